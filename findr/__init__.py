"""Findr - marketplace search and relevance ranking.

Fetches Facebook Marketplace pages through a scraping provider, parses
them into structured listings and ranks them against search criteria.
"""

__version__ = "0.1.0"
__author__ = "Findr Team"

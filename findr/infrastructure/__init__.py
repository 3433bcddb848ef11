# Infrastructure Package
"""
Implementations of the domain contracts: provider access, caching,
rate limiting, parsing and the marketplace scraper.
"""

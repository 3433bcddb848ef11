# Parsers Package
"""
HTML parsing utilities for Facebook Marketplace scraping.

This module provides parsers for extracting structured listings
from raw marketplace HTML using BeautifulSoup.
"""

from findr.infrastructure.scraper.parsers.marketplace_parser import (
    MarketplaceListingParser,
    MarketplaceSelectors,
)
from findr.infrastructure.scraper.parsers.utils import (
    absolute_url,
    extract_listing_id_from_url,
    extract_price_and_currency,
    parse_relative_time,
)

__all__ = [
    "MarketplaceListingParser",
    "MarketplaceSelectors",
    "absolute_url",
    "extract_listing_id_from_url",
    "extract_price_and_currency",
    "parse_relative_time",
]

# Scraper Package
"""
Marketplace scraping implementations.

This module provides:
- MarketplaceScraper: Cache, rate limiting, provider call, parsing and fallback
- TokenBucketRateLimiter / SlidingWindowRateLimiter: Outbound request limiting
- SyntheticListingGenerator: Deterministic fallback listings
- Parsers: HTML parsing for search results and listing details
"""

from findr.infrastructure.scraper.rate_limiter import (
    RateLimiterConfig,
    SlidingWindowRateLimiter,
    TokenBucketRateLimiter,
    create_rate_limiters_from_config,
)
from findr.infrastructure.scraper.marketplace_scraper import (
    MarketplaceScraper,
    ScraperStats,
    create_scraper,
)
from findr.infrastructure.scraper.parsers import (
    MarketplaceListingParser,
    MarketplaceSelectors,
)
from findr.infrastructure.scraper.synthetic import SyntheticListingGenerator

__all__ = [
    # Main scraper
    "MarketplaceScraper",
    "ScraperStats",
    "create_scraper",
    # Rate limiting
    "RateLimiterConfig",
    "SlidingWindowRateLimiter",
    "TokenBucketRateLimiter",
    "create_rate_limiters_from_config",
    # Parsers
    "MarketplaceListingParser",
    "MarketplaceSelectors",
    # Fallback
    "SyntheticListingGenerator",
]

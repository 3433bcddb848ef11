"""
Facebook Marketplace scraper backed by the Bright Data provider.

Main orchestrator that handles, per search:
- Cache lookup on a normalized projection of the criteria
- Rate limiting (token bucket, then sliding window)
- Provider call with exponential-backoff retry
- HTML parsing into listings
- Synthetic fallback when the page yields nothing or the provider keeps failing
- Cooldown and a bounded re-run after a provider throttling signal

Every collaborator is injectable; nothing is shared through module
globals, so tests can substitute fresh instances per test case.

Example:
    >>> async with MarketplaceScraper() as scraper:
    ...     listings = await scraper.search(
    ...         SearchCriteria(query="vintage chair", max_price=200, limit=10)
    ...     )
    ...     for listing in listings:
    ...         print(f"{listing.title}: ${listing.price}")
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar
from urllib.parse import urlencode

from findr.domain.entities.listing import Listing
from findr.domain.entities.search_criteria import SearchCriteria
from findr.domain.interfaces.parser_interface import ListingParserInterface
from findr.domain.interfaces.provider_interface import ProviderClientInterface
from findr.infrastructure.cache.result_cache import ResultCache
from findr.infrastructure.provider.client import BrightDataClient
from findr.infrastructure.provider.models import ProviderRequest, ProviderResponse, ProxyDetails
from findr.infrastructure.provider.retry import fetch_with_retry
from findr.infrastructure.scraper.parsers.marketplace_parser import MarketplaceListingParser
from findr.infrastructure.scraper.rate_limiter import (
    SlidingWindowRateLimiter,
    TokenBucketRateLimiter,
    create_rate_limiters_from_config,
)
from findr.infrastructure.scraper.synthetic import SyntheticListingGenerator
from findr.utils.config import AppConfig, get_config
from findr.utils.exceptions import (
    ConfigurationError,
    InvalidInputError,
    ProviderRequestError,
    RateLimitError,
)
from findr.utils.logger import configure_logging, get_logger, log_exception, log_execution_time

logger = get_logger(__name__)

T = TypeVar("T")

CACHE_KEY_PREFIX = "fb_marketplace"


@dataclass
class ScraperStats:
    """
    Statistics for a scraper instance.

    Tracks searches, cache usage, provider calls, fallbacks and errors.
    """
    searches: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    provider_calls: int = 0
    fallbacks: int = 0
    rate_limit_retries: int = 0
    errors: int = 0
    started_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.started_at is None:
            self.started_at = datetime.now()

    @property
    def cache_hit_rate(self) -> float:
        """Fraction of lookups served from the cache."""
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    def __str__(self) -> str:
        return (
            f"ScraperStats(searches={self.searches}, "
            f"cache_hits={self.cache_hits}, "
            f"provider_calls={self.provider_calls}, "
            f"fallbacks={self.fallbacks}, "
            f"errors={self.errors})"
        )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _location_slug(location: str) -> str:
    city = location.split(",")[0]
    return re.sub(r"[^a-z0-9]+", "", city.lower())


class MarketplaceScraper:
    """
    Marketplace search orchestrator.

    Attributes:
        settings: Application configuration.
        client: Scraping provider client.
        parser: Marketplace HTML parser.
        cache: Listing cache shared by all searches of this instance.
        token_bucket: Burst limiter.
        sliding_window: Throughput limiter.
        synthetic_generator: Fallback listing generator.
        stats: Scraper statistics.
    """

    def __init__(
        self,
        settings: Optional[AppConfig] = None,
        client: Optional[ProviderClientInterface] = None,
        parser: Optional[ListingParserInterface] = None,
        cache: Optional[ResultCache] = None,
        token_bucket: Optional[TokenBucketRateLimiter] = None,
        sliding_window: Optional[SlidingWindowRateLimiter] = None,
        synthetic_generator: Optional[SyntheticListingGenerator] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize the scraper.

        Args:
            settings: Configuration. If None, uses get_config().
            client: Provider client. If None, creates a BrightDataClient.
            parser: HTML parser. If None, creates a MarketplaceListingParser.
            cache: Result cache. If None, creates one from cache settings.
            token_bucket: Burst limiter. If None, creates from rate limit settings.
            sliding_window: Throughput limiter. If None, creates from rate limit settings.
            synthetic_generator: Fallback generator. If None, creates a seeded one per search.
            sleep: Awaitable sleep used for cooldowns, backoff and default limiter waits (asyncio.sleep if None).
        """
        self.settings = settings or get_config()
        configure_logging(self.settings.log_level, self.settings.log_dir)

        self.client = client or BrightDataClient.from_config(self.settings)
        self.parser = parser or MarketplaceListingParser()
        self.cache: ResultCache = cache or ResultCache(
            default_ttl=self.settings.cache.ttl_seconds,
            max_size=self.settings.cache.max_size,
        )

        if token_bucket is None or sliding_window is None:
            default_bucket, default_window = create_rate_limiters_from_config(self.settings, sleep=sleep)
            token_bucket = token_bucket or default_bucket
            sliding_window = sliding_window or default_window
        self.token_bucket = token_bucket
        self.sliding_window = sliding_window

        self.synthetic_generator = synthetic_generator or SyntheticListingGenerator()
        self._sleep = sleep

        self.stats = ScraperStats()

        logger.info(
            f"MarketplaceScraper initialized: zone={self.settings.provider.zone}, "
            f"rpm={self.settings.rate_limit.requests_per_minute}, "
            f"cache_ttl={self.settings.cache.ttl_seconds}s"
        )

    # =========================================
    # Context Manager
    # =========================================

    async def __aenter__(self) -> "MarketplaceScraper":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the provider client."""
        await self.client.close()
        logger.info(f"Scraper closed. {self.stats}")

    # =========================================
    # Request Building
    # =========================================

    def generate_cache_key(self, criteria: SearchCriteria) -> str:
        """
        Build the cache key for a search.

        Criteria differing only in case or surrounding whitespace share a key.
        """
        return f"{CACHE_KEY_PREFIX}:" + json.dumps(criteria.normalized(), sort_keys=True)

    def build_search_url(self, criteria: SearchCriteria) -> str:
        """
        Build the marketplace search page URL for the criteria.

        Example:
            >>> scraper.build_search_url(SearchCriteria(query="chair", location="Brooklyn, NY"))
            'https://www.facebook.com/marketplace/brooklyn/search?query=chair'
        """
        base = self.settings.search.marketplace_base_url

        path = f"{base}/search"
        if criteria.location:
            slug = _location_slug(criteria.location)
            if slug:
                path = f"{base}/{slug}/search"

        params = {"query": criteria.query.strip()}
        if criteria.min_price is not None:
            params["minPrice"] = _format_number(criteria.min_price)
        if criteria.max_price is not None:
            params["maxPrice"] = _format_number(criteria.max_price)
        if criteria.radius is not None:
            params["radius"] = _format_number(criteria.radius)
        if criteria.category:
            params["category"] = criteria.category.strip()

        return f"{path}?{urlencode(params)}"

    def build_item_url(self, listing_id: str) -> str:
        """Build the detail page URL of a listing."""
        return f"{self.settings.search.marketplace_base_url}/item/{listing_id}/"

    def build_provider_request(self, url: str) -> ProviderRequest:
        """Build the provider payload for fetching ``url``."""
        provider = self.settings.provider
        return ProviderRequest(
            zone=provider.zone,
            url=url,
            format=provider.format,
            country=provider.country,
            timeout=provider.timeout_seconds,
        )

    # =========================================
    # Rate Limiting and Provider Access
    # =========================================

    async def apply_rate_limiting(self) -> None:
        """Wait for admission from both limiters, in sequence."""
        await self.token_bucket.consume_async()
        await self.sliding_window.record_request_async()

    def _sleep_fn(self) -> Callable[[float], Awaitable[None]]:
        return self._sleep or asyncio.sleep

    async def _fetch_page(self, url: str) -> ProviderResponse:
        """Rate-limit, then fetch a page with retry."""
        request = self.build_provider_request(url)

        await self.apply_rate_limiting()

        async def call_provider() -> ProviderResponse:
            self.stats.provider_calls += 1
            return await self.client.fetch(request)

        retry = self.settings.retry
        with log_execution_time(logger, f"provider fetch {url}"):
            return await fetch_with_retry(
                call_provider,
                max_retries=retry.max_retries,
                base_delay=retry.base_delay_seconds,
                max_jitter=retry.max_jitter_seconds,
                sleep=self._sleep_fn(),
            )

    async def _with_rate_limit_recovery(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation``, re-running it after a cooldown when throttled.

        At most ``max_rate_limit_retries`` extra runs; a throttling signal
        on the last run propagates.
        """
        retry = self.settings.retry
        for attempt in range(retry.max_rate_limit_retries + 1):
            try:
                return await operation()
            except RateLimitError:
                if attempt >= retry.max_rate_limit_retries:
                    self.stats.errors += 1
                    raise
                cooldown = retry.rate_limit_cooldown_seconds
                self.stats.rate_limit_retries += 1
                logger.warning(f"Provider rate limit hit, cooling down for {cooldown:.1f}s")
                await self._sleep_fn()(cooldown)

    # =========================================
    # Search
    # =========================================

    async def search(self, criteria: SearchCriteria) -> List[Listing]:
        """
        Search the marketplace.

        Args:
            criteria: Search criteria.

        Returns:
            Listings in page order, at most ``criteria.limit`` of them.
            Synthetic listings when the page yields none or the provider
            still fails after retries.

        Raises:
            ConfigurationError: If the provider is not configured.
            RateLimitError: If the provider is still throttling after recovery.
        """
        self.stats.searches += 1
        cache_key = self.generate_cache_key(criteria)

        try:
            return await self._with_rate_limit_recovery(
                lambda: self._search_once(criteria, cache_key)
            )
        except ConfigurationError as e:
            if not self.settings.search.synthetic_without_credentials:
                raise
            logger.warning(f"Provider not configured ({e.message}), serving synthetic listings")
            return self._fallback(criteria, cache_key)
        except RateLimitError:
            raise
        except ProviderRequestError as e:
            self.stats.errors += 1
            log_exception(logger, f"search '{criteria.query}'", e)
            logger.warning(f"Provider failed after retries, serving synthetic listings for '{criteria.query}'")
            return self._fallback(criteria, cache_key)
        except Exception as e:
            self.stats.errors += 1
            log_exception(logger, f"search '{criteria.query}'", e)
            raise

    async def _search_once(self, criteria: SearchCriteria, cache_key: str) -> List[Listing]:
        cached = self.cache.get(cache_key)
        if cached is not None:
            self.stats.cache_hits += 1
            logger.debug(f"Cache hit: {cache_key}")
            return list(cached)
        self.stats.cache_misses += 1

        url = self.build_search_url(criteria)
        logger.info(f"Searching marketplace: {url}")

        response = await self._fetch_page(url)
        listings = self.parser.parse_search_results(response.body)

        if not listings:
            logger.warning(f"No listings parsed for '{criteria.query}', using synthetic fallback")
            return self._fallback(criteria, cache_key)

        listings = listings[:criteria.limit]
        self.cache.set(cache_key, listings)
        logger.info(f"Found {len(listings)} listings for '{criteria.query}'")
        return list(listings)

    def _fallback(self, criteria: SearchCriteria, cache_key: str) -> List[Listing]:
        self.stats.fallbacks += 1
        listings = self.synthetic_generator.generate(criteria)
        self.cache.set(cache_key, listings, ttl=self.settings.cache.fallback_ttl_seconds)
        return list(listings)

    # =========================================
    # Listing Details
    # =========================================

    async def get_listing_details(self, listing_id: str) -> Optional[Listing]:
        """
        Fetch the full details of one listing.

        Args:
            listing_id: Marketplace item ID.

        Returns:
            Listing with details, or None if the page could not be parsed.

        Raises:
            InvalidInputError: If listing_id is empty.
        """
        if not listing_id or not listing_id.strip():
            raise InvalidInputError("listing_id cannot be empty", field="listing_id", value=listing_id)

        cache_key = f"{CACHE_KEY_PREFIX}:item:{listing_id}"

        async def fetch_details() -> Optional[Listing]:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.stats.cache_hits += 1
                return cached
            self.stats.cache_misses += 1

            response = await self._fetch_page(self.build_item_url(listing_id))
            listing = self.parser.parse_listing_details(response.body, listing_id)
            if listing is not None:
                self.cache.set(cache_key, listing)
            return listing

        try:
            return await self._with_rate_limit_recovery(fetch_details)
        except (ConfigurationError, RateLimitError):
            raise
        except Exception as e:
            self.stats.errors += 1
            log_exception(logger, f"listing details {listing_id}", e)
            raise

    def get_proxy_details(self) -> ProxyDetails:
        """Proxy connection details of the provider client."""
        if not hasattr(self.client, "get_proxy_details"):
            raise ConfigurationError("Provider client does not expose proxy details")
        return self.client.get_proxy_details()


# =========================================
# Factory Function
# =========================================

def create_scraper(**kwargs) -> MarketplaceScraper:
    """
    Factory function to create a MarketplaceScraper.

    Args:
        **kwargs: Arguments passed to MarketplaceScraper.__init__

    Returns:
        Configured MarketplaceScraper instance.
    """
    return MarketplaceScraper(**kwargs)

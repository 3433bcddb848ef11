# Provider Package
"""
Scraping provider access.

Provides:
- BrightDataClient: aiohttp client for the Bright Data request API
- fetch_with_retry: Bounded exponential-backoff retry wrapper
- ProviderRequest / ProviderResponse / ProxyDetails: Wire models
"""

from findr.infrastructure.provider.client import BrightDataClient
from findr.infrastructure.provider.models import (
    ProviderRequest,
    ProviderResponse,
    ProxyDetails,
)
from findr.infrastructure.provider.retry import fetch_with_retry, get_backoff_delay

__all__ = [
    "BrightDataClient",
    "ProviderRequest",
    "ProviderResponse",
    "ProxyDetails",
    "fetch_with_retry",
    "get_backoff_delay",
]

"""
Bright Data scraping provider client.

Sends page fetch requests to the provider's request API over aiohttp
and maps provider failures onto the application's exception hierarchy:

- missing API key → ConfigurationError (before any I/O)
- HTTP 429, or a payload reporting 429 → RateLimitError
- any other non-2xx status or malformed payload → ProviderRequestError

Example:
    >>> async with BrightDataClient.from_config() as client:
    ...     response = await client.fetch(
    ...         ProviderRequest(zone="mcp_unlocker", url="https://www.facebook.com/marketplace/")
    ...     )
    ...     print(len(response.body))
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from findr.domain.interfaces.provider_interface import ProviderClientInterface
from findr.infrastructure.provider.models import ProviderRequest, ProviderResponse, ProxyDetails
from findr.utils.config import ProviderConfig, ProxyConfig
from findr.utils.exceptions import ConfigurationError, ProviderRequestError, RateLimitError
from findr.utils.logger import get_logger

logger = get_logger(__name__)

HTTP_TOO_MANY_REQUESTS = 429


def _retry_after(headers) -> Optional[int]:
    value = headers.get("Retry-After") if headers is not None else None
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


class BrightDataClient(ProviderClientInterface):
    """
    Async client for the Bright Data request API.

    One aiohttp session is created lazily and reused until ``close``.

    Attributes:
        provider: Provider endpoint, zone and credentials.
        proxy: Direct proxy access settings.
    """

    def __init__(
        self,
        provider: Optional[ProviderConfig] = None,
        proxy: Optional[ProxyConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            provider: Provider configuration. Uses defaults if None.
            proxy: Proxy configuration. Uses defaults if None.
            session: Existing aiohttp session to reuse (not closed by the client).
        """
        self.provider = provider or ProviderConfig()
        self.proxy = proxy or ProxyConfig()
        self._session = session
        self._owns_session = session is None

        logger.debug(
            f"BrightDataClient initialized: url={self.provider.base_url}, zone={self.provider.zone}"
        )

    @classmethod
    def from_config(cls, settings=None) -> "BrightDataClient":
        """
        Create a client from config.yaml settings.

        Args:
            settings: AppConfig instance (loaded with get_config() if omitted).
        """
        from findr.utils.config import get_config

        settings = settings or get_config()
        return cls(provider=settings.provider, proxy=settings.proxy)

    # =========================================
    # Context Manager
    # =========================================

    async def __aenter__(self) -> "BrightDataClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    # =========================================
    # Session Management
    # =========================================

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.provider.timeout_seconds),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("BrightDataClient session closed")
        self._session = None

    # =========================================
    # Requests
    # =========================================

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.provider.api_key}",
        }

    async def fetch(self, request: ProviderRequest) -> ProviderResponse:
        """
        Fetch one page through the provider.

        Args:
            request: Provider request payload.

        Returns:
            ProviderResponse with a 2xx status and the page body.

        Raises:
            ConfigurationError: If no API key is configured.
            RateLimitError: If the provider signals throttling.
            ProviderRequestError: On network errors, non-2xx statuses or malformed payloads.
        """
        if not self.provider.api_key:
            raise ConfigurationError(
                "Bright Data API key is not configured",
                missing=["provider.api_key (BRIGHTDATA_API_KEY)"],
            )

        session = self._get_session()
        logger.debug(f"Provider request: {request.url}")

        try:
            async with session.post(
                self.provider.base_url,
                json=request.to_payload(),
                headers=self._headers(),
            ) as response:
                status = response.status
                headers = response.headers
                text = await response.text()
        except asyncio.TimeoutError as e:
            raise ProviderRequestError(
                f"Provider request timed out after {self.provider.timeout_seconds}s",
                url=request.url,
            ) from e
        except aiohttp.ClientError as e:
            raise ProviderRequestError(f"Provider request failed: {e}", url=request.url) from e

        if status == HTTP_TOO_MANY_REQUESTS:
            raise RateLimitError(
                "Provider rate limit exceeded",
                retry_after=_retry_after(headers),
                context={"url": request.url},
            )
        if not 200 <= status < 300:
            raise ProviderRequestError(
                f"Provider returned HTTP {status}",
                url=request.url,
                status_code=status,
                context={"body": text[:200]},
            )

        provider_response = self._parse_response(text, status, request.url)

        if provider_response.status_code == HTTP_TOO_MANY_REQUESTS:
            raise RateLimitError("Provider rate limit exceeded", context={"url": request.url})
        if not provider_response.ok:
            raise ProviderRequestError(
                provider_response.error or f"Target page returned {provider_response.status_code}",
                url=request.url,
                status_code=provider_response.status_code,
            )

        return provider_response

    def _parse_response(self, text: str, status: int, url: str) -> ProviderResponse:
        """Read the provider payload, accepting a raw HTML body as well."""
        stripped = text.lstrip()
        if stripped.startswith("<"):
            return ProviderResponse(status_code=status, body=text)

        try:
            data = json.loads(text)
        except ValueError as e:
            raise ProviderRequestError("Provider returned a non-JSON payload", url=url) from e

        if not isinstance(data, dict):
            raise ProviderRequestError("Provider payload is not an object", url=url)

        try:
            return ProviderResponse.model_validate(data)
        except PydanticValidationError as e:
            raise ProviderRequestError(f"Malformed provider payload: {e}", url=url) from e

    def get_proxy_details(self) -> ProxyDetails:
        """
        Describe how to reach the provider through its proxy.

        Returns:
            ProxyDetails with a proxy URL and a curl example.
        """
        return ProxyDetails.build(
            host=self.proxy.host,
            port=self.proxy.port,
            username=self.proxy.username,
            password=self.proxy.password,
            zone_name=self.provider.zone,
            api_url=self.provider.base_url,
            api_key=self.provider.api_key,
        )

"""
Abstract interface for scraping provider clients.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from findr.infrastructure.provider.models import ProviderRequest, ProviderResponse


class ProviderClientInterface(ABC):
    """
    Abstract base class for scraping provider clients.

    Fetches marketplace pages on the pipeline's behalf.
    """

    @abstractmethod
    async def fetch(self, request: "ProviderRequest") -> "ProviderResponse":
        """
        Send one request to the provider.

        Args:
            request: Provider request payload.

        Returns:
            ProviderResponse with the page body.

        Raises:
            ConfigurationError: If credentials are missing.
            RateLimitError: If the provider signals throttling.
            ProviderRequestError: On any other provider failure.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (HTTP sessions)."""
        pass

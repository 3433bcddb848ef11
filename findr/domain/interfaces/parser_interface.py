"""
Abstract interface for marketplace HTML parsers.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from findr.domain.entities.listing import Listing


class ListingParserInterface(ABC):
    """
    Abstract base class for listing parsers.

    One implementation exists per provider markup version, so a layout
    change on the marketplace means a new parser, not edits scattered
    through the scraper.
    """

    @abstractmethod
    def parse_search_results(self, html: str) -> List[Listing]:
        """
        Parse a search results page.

        Args:
            html: Raw page HTML.

        Returns:
            Listings in page order. Empty when nothing could be parsed.
        """
        pass

    @abstractmethod
    def parse_listing_details(self, html: str, listing_id: str) -> Optional[Listing]:
        """
        Parse a single listing page.

        Args:
            html: Raw page HTML.
            listing_id: Identifier of the listing the page belongs to.

        Returns:
            Listing with full details, or None if the page is unparseable.
        """
        pass

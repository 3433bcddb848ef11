"""
Facebook Marketplace HTML parser.

Extracts listings from search result pages and full details from single
listing pages, as returned raw by the scraping provider. CSS selectors
are isolated in MarketplaceSelectors for easy maintenance when Facebook
updates their DOM.

The field heuristics ("first span with a currency symbol", "last span
with a comma") are best-effort. Parsing never raises on bad markup:
cards that cannot be read are skipped and fields that cannot be read
are left as None.

Example:
    >>> parser = MarketplaceListingParser()
    >>> listings = parser.parse_search_results(html)
    >>> for listing in listings:
    ...     print(f"{listing.title}: {listing.price} {listing.currency}")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag

from findr.domain.entities.listing import Listing, SellerInfo
from findr.domain.interfaces.parser_interface import ListingParserInterface
from findr.infrastructure.scraper.parsers.utils import (
    FACEBOOK_BASE_URL,
    absolute_url,
    extract_listing_id_from_url,
    extract_price_and_currency,
    has_currency_symbol,
    parse_relative_time,
)
from findr.utils.logger import get_logger

logger = get_logger(__name__)


# ============================================
# CSS Selectors Configuration
# ============================================

@dataclass
class MarketplaceSelectors:
    """
    CSS selectors for Facebook Marketplace pages.

    Search page selectors target listing cards in the results feed;
    detail page selectors target a single listing page.
    """

    # Individual listing card in the search results feed
    search_card: str = 'div[data-pagelet="MarketplaceSearch"] div[data-testid="marketplace_feed_item"]'

    # Link to the listing detail page
    item_link: str = 'a[href*="/marketplace/item/"]'

    # Generic text nodes; the first one in a card is the title
    text_node: str = 'span[dir="auto"]'

    # Listing image
    image: str = 'img[src]'

    # Detail page title
    detail_title: str = 'h1[dir="auto"]'

    # Detail page text blocks; the first long one is the description
    detail_text_block: str = 'div[dir="auto"]'

    # Category breadcrumb link
    category_link: str = 'a[href*="/marketplace/category/"]'

    # Full-size photo served from Facebook's CDN
    detail_image: str = 'img[src*="scontent"]'

    # Seller profile link
    seller_link: str = 'a[href*="/user/"]'


# Default selectors instance
DEFAULT_SELECTORS = MarketplaceSelectors()

# Text blocks at or below this length are not treated as descriptions
MIN_DESCRIPTION_LENGTH = 50

RATING_MARKER = "★"
JOINED_MARKER = "Joined"
CONDITION_MARKER = "Condition:"
# Whole word, so "Chicago, IL" is not a posted time
POSTED_PATTERN = re.compile(r"\bago\b", re.IGNORECASE)


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text(" ", strip=True)


def _leaf_spans(root: Tag) -> List[Tag]:
    """Spans that do not wrap other spans, in document order."""
    return [span for span in root.find_all("span") if span.find("span") is None]


class MarketplaceListingParser(ListingParserInterface):
    """
    Parser for Facebook Marketplace search and listing pages.

    Attributes:
        selectors: CSS selectors configuration.
        base_url: Host used to resolve relative links.

    Example:
        >>> parser = MarketplaceListingParser()
        >>> listing = parser.parse_listing_details(html, "123456789")
        >>> listing.seller_info.name
        'John Doe'
    """

    def __init__(
        self,
        selectors: Optional[MarketplaceSelectors] = None,
        base_url: str = FACEBOOK_BASE_URL,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the parser.

        Args:
            selectors: Custom CSS selectors. Uses defaults if None.
            base_url: Host used to resolve relative links.
            now: Time source for resolving "2 days ago" style text.
        """
        self.selectors = selectors or DEFAULT_SELECTORS
        self.base_url = base_url.rstrip("/")
        self._now = now or (lambda: datetime.now(timezone.utc))
        logger.debug("MarketplaceListingParser initialized")

    # ============================================
    # Search Results
    # ============================================

    def parse_search_results(self, html: str) -> List[Listing]:
        """
        Parse all listing cards from a search results page.

        Args:
            html: Raw search page HTML.

        Returns:
            Listings in page order; empty for blank or unrecognized markup.
        """
        if not html or not html.strip():
            return []

        soup = BeautifulSoup(html, 'lxml')
        cards = soup.select(self.selectors.search_card)

        if not cards:
            logger.warning("No listing cards found in marketplace HTML")
            return []

        listings: List[Listing] = []
        for index, card in enumerate(cards):
            try:
                listing = self.parse_search_card(card)
            except Exception as e:
                logger.warning(f"Failed to parse listing card {index}: {e}")
                continue
            if listing is not None:
                listings.append(listing)

        logger.info(f"Parsed {len(listings)} of {len(cards)} listing cards")
        return listings

    def parse_search_card(self, card: Tag) -> Optional[Listing]:
        """
        Parse a single search result card.

        Args:
            card: Card element.

        Returns:
            Listing, or None if the card has no recognizable item link.
        """
        link = card.select_one(self.selectors.item_link)
        href = link.get("href") if link is not None else None
        listing_id = extract_listing_id_from_url(href)

        if not listing_id or not href:
            logger.debug("Card without item link or ID, skipping")
            return None

        title = _text(card.select_one(self.selectors.text_node))
        spans = [_text(span) for span in _leaf_spans(card)]

        price_text = next((text for text in spans if has_currency_symbol(text)), "")
        price, currency = extract_price_and_currency(price_text)

        location_texts = [text for text in spans if "," in text and not has_currency_symbol(text)]
        location = location_texts[-1] if location_texts else None

        image = card.select_one(self.selectors.image)

        return Listing(
            listing_id=listing_id,
            listing_url=absolute_url(href, self.base_url),
            title=title or f"Facebook Marketplace Item {listing_id}",
            price=price,
            currency=currency,
            location=location,
            image_url=image.get("src") if image is not None else None,
        )

    # ============================================
    # Listing Details
    # ============================================

    def parse_listing_details(self, html: str, listing_id: str) -> Optional[Listing]:
        """
        Parse a single listing page.

        Each field is extracted independently; a field that fails is
        left as None without affecting the others.

        Args:
            html: Raw listing page HTML.
            listing_id: Identifier of the listing.

        Returns:
            Listing with full details, or None for empty input.
        """
        if not html or not html.strip() or not listing_id:
            return None

        try:
            soup = BeautifulSoup(html, 'lxml')
        except Exception as e:
            logger.error(f"Failed to parse listing page {listing_id}: {e}")
            return None

        spans = _leaf_spans(soup)
        span_texts = [_text(span) for span in spans]

        title = self._safe_extract("title", lambda: _text(soup.select_one(self.selectors.detail_title)))
        price_text = self._safe_extract(
            "price",
            lambda: next((text for text in span_texts if has_currency_symbol(text)), ""),
        )
        price, currency = extract_price_and_currency(price_text)

        posted_text = self._safe_extract(
            "posted time",
            lambda: next((text for text in span_texts if POSTED_PATTERN.search(text)), None),
        )

        return Listing(
            listing_id=listing_id,
            listing_url=f"{self.base_url}/marketplace/item/{listing_id}",
            title=title or f"Facebook Marketplace Item {listing_id}",
            price=price,
            currency=currency,
            location=self._safe_extract("location", lambda: self._extract_location(span_texts)),
            image_url=self._safe_extract("image", lambda: self._extract_image(soup)),
            description=self._safe_extract("description", lambda: self._extract_description(soup)),
            category=self._safe_extract("category", lambda: _text(soup.select_one(self.selectors.category_link)) or None),
            condition=self._safe_extract("condition", lambda: self._extract_condition(spans)),
            seller_info=self._safe_extract("seller", lambda: self._extract_seller(soup, span_texts)),
            posted_at=parse_relative_time(posted_text, self._now()),
            posted_text=posted_text,
        )

    def _safe_extract(self, field: str, extractor: Callable):
        try:
            return extractor() or None
        except Exception as e:
            logger.debug(f"Failed to extract {field}: {e}")
            return None

    def _extract_location(self, span_texts: List[str]) -> Optional[str]:
        for text in span_texts:
            if (
                "," in text
                and not has_currency_symbol(text)
                and RATING_MARKER not in text
                and not POSTED_PATTERN.search(text)
            ):
                return text
        return None

    def _extract_description(self, soup: BeautifulSoup) -> Optional[str]:
        for block in soup.select(self.selectors.detail_text_block):
            # Skip wrappers around other text blocks
            if block.find("div", attrs={"dir": "auto"}) is not None:
                continue
            text = _text(block)
            if len(text) > MIN_DESCRIPTION_LENGTH:
                return text
        return None

    def _extract_condition(self, spans: List[Tag]) -> Optional[str]:
        for span in spans:
            text = _text(span)
            if CONDITION_MARKER not in text:
                continue
            sibling = span.find_next_sibling()
            if sibling is not None and _text(sibling):
                return _text(sibling)
            # "Condition: Good" in a single span
            remainder = text.split(CONDITION_MARKER, 1)[1].strip()
            return remainder or None
        return None

    def _extract_image(self, soup: BeautifulSoup) -> Optional[str]:
        image = soup.select_one(self.selectors.detail_image) or soup.select_one(self.selectors.image)
        return image.get("src") if image is not None else None

    def _extract_seller(self, soup: BeautifulSoup, span_texts: List[str]) -> Optional[SellerInfo]:
        link = soup.select_one(self.selectors.seller_link)
        name = _text(link) or None
        href = link.get("href") if link is not None else None

        rating = next((text for text in span_texts if RATING_MARKER in text), None)

        joined_text = next((text for text in span_texts if JOINED_MARKER in text), None)
        joined_date = None
        if joined_text:
            joined_date = joined_text.split(JOINED_MARKER, 1)[1].strip() or None

        seller = SellerInfo(
            name=name,
            rating=rating,
            joined_date=joined_date,
            profile_url=absolute_url(href, self.base_url) if href else None,
        )
        return None if seller.is_empty() else seller

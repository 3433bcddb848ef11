"""Helper utilities for marketplace parsing."""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import urljoin

FACEBOOK_BASE_URL = "https://www.facebook.com"

CURRENCY_SYMBOLS = {
    '$': 'USD',
    '€': 'EUR',
    '£': 'GBP',
    '¥': 'JPY',
    '₹': 'INR',
    '₽': 'RUB',
    '₩': 'KRW',
}

# Checked before single-character symbols
CURRENCY_PREFIXES = {
    'C$': 'CAD',
    'A$': 'AUD',
}

DEFAULT_CURRENCY = 'USD'

LISTING_ID_PATTERN = re.compile(r"/marketplace/item/(\d+)")

_RELATIVE_TIME_PATTERN = re.compile(
    r"\b(\d+|an?)\s+(second|sec|minute|min|hour|hr|day|week|month|year)s?\s+ago\b",
    re.IGNORECASE,
)

_UNIT_SECONDS = {
    'second': 1,
    'sec': 1,
    'minute': 60,
    'min': 60,
    'hour': 3600,
    'hr': 3600,
    'day': 86400,
    'week': 7 * 86400,
    'month': 30 * 86400,
    'year': 365 * 86400,
}


def has_currency_symbol(text: str) -> bool:
    """Check whether text contains any supported currency symbol."""
    return any(symbol in text for symbol in CURRENCY_SYMBOLS)


def currency_symbol_to_code(symbol: Optional[str]) -> str:
    """Map a currency symbol to its ISO code, defaulting to USD.

    Args:
        symbol: Currency symbol such as "$", "€" or "C$"

    Returns:
        ISO 4217 currency code
    """
    if not symbol:
        return DEFAULT_CURRENCY
    return CURRENCY_PREFIXES.get(symbol) or CURRENCY_SYMBOLS.get(symbol, DEFAULT_CURRENCY)


def extract_price_and_currency(text: Optional[str]) -> Tuple[Optional[float], Optional[str]]:
    """Parse a price string into amount and currency code.

    Handles various formats:
    - "$150" → (150.0, "USD")
    - "€120" → (120.0, "EUR")
    - "£99.99" → (99.99, "GBP")
    - "C$1,200" → (1200.0, "CAD")
    - "$" → (None, "USD")
    - "" → (None, None)

    Args:
        text: Price text as displayed on the page

    Returns:
        Tuple of (price, currency). Unknown symbols map to USD.
    """
    if not text or not text.strip():
        return None, None

    text = text.strip()

    symbol = None
    for prefix in CURRENCY_PREFIXES:
        if text.startswith(prefix):
            symbol = prefix
            break
    if symbol is None:
        match = re.search(r"[^\d.,\s]", text)
        symbol = match.group() if match else None
    currency = currency_symbol_to_code(symbol)

    numeric = re.sub(r"[^\d.]", "", text)
    try:
        price = float(numeric) if numeric else None
    except ValueError:
        # e.g. "1.2.3" left by stripped separators
        price = None

    return price, currency


def extract_listing_id_from_url(url: Optional[str]) -> str:
    """Extract the marketplace item ID from a URL.

    Handles absolute and relative formats:
    - https://www.facebook.com/marketplace/item/123456789/
    - /marketplace/item/123456789/?ref=search

    Args:
        url: Listing URL

    Returns:
        Item ID, or an empty string if the URL has none
    """
    if not url:
        return ""
    match = LISTING_ID_PATTERN.search(url)
    return match.group(1) if match else ""


def absolute_url(href: str, base: str = FACEBOOK_BASE_URL) -> str:
    """Resolve a possibly relative link against the marketplace host."""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base + "/", href)


def parse_relative_time(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Convert a relative posted-time string into a timestamp.

    Understands "just now", "yesterday" and "<n> <unit>(s) ago" anywhere
    in the text, e.g. "Listed 3 weeks ago in Brooklyn, NY". Months count
    as 30 days and years as 365.

    Args:
        text: Posted-time text as displayed on the page
        now: Reference time (defaults to the current UTC time)

    Returns:
        Timezone-aware timestamp, or None if the text is not understood
    """
    if not text:
        return None

    now = now or datetime.now(timezone.utc)
    lowered = text.lower()

    if "just now" in lowered:
        return now
    if "yesterday" in lowered:
        return now - timedelta(days=1)

    match = _RELATIVE_TIME_PATTERN.search(lowered)
    if match is None:
        return None

    amount_text, unit = match.groups()
    amount = 1 if amount_text in ("a", "an") else int(amount_text)
    return now - timedelta(seconds=amount * _UNIT_SECONDS[unit])

"""
Listing entity representing one Facebook Marketplace item.
"""

import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional


_RATING_PATTERN = re.compile(r"\d+(?:\.\d+)?")

# Formats seen in "Joined <date>" text and in synthetic seller data
_JOINED_DATE_FORMATS = ("%Y-%m-%d", "%B %Y", "%b %Y", "%B %d, %Y", "%b %d, %Y", "%Y")


@dataclass
class SellerInfo:
    """Seller summary as displayed on a listing page."""

    name: Optional[str] = None
    rating: Optional[str] = None  # raw text, e.g. "★★★★☆ 4.8"
    joined_date: Optional[str] = None  # raw text, e.g. "January 2019"
    profile_url: Optional[str] = None

    def rating_value(self) -> Optional[float]:
        """Return the numeric rating, or None if it cannot be read."""
        if not self.rating:
            return None
        match = _RATING_PATTERN.search(self.rating)
        if match is None:
            return None
        return float(match.group())

    def joined_at(self) -> Optional[datetime]:
        """Parse the join date, or None if it is in an unknown format."""
        if not self.joined_date:
            return None

        text = self.joined_date.strip()
        if text.lower().startswith("joined"):
            text = text[len("joined"):].strip(" :")
        if text.lower().startswith("facebook in"):
            text = text[len("facebook in"):].strip()

        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass

        for fmt in _JOINED_DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        return None

    def is_empty(self) -> bool:
        """Check if no seller field was found."""
        return not any((self.name, self.rating, self.joined_date, self.profile_url))


@dataclass
class Listing:
    """
    Represents a marketplace listing, parsed from HTML or synthesized.

    Only ``listing_id`` and ``listing_url`` are guaranteed; every other
    field may be missing when the page did not expose it.
    """

    listing_id: str
    listing_url: str
    title: str = ""
    price: Optional[float] = None
    currency: Optional[str] = None
    location: Optional[str] = None
    distance: Optional[float] = None  # miles from the search origin
    image_url: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    condition: Optional[str] = None
    seller_info: Optional[SellerInfo] = None
    posted_at: Optional[datetime] = None
    posted_text: Optional[str] = None
    is_synthetic: bool = False
    scraped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate required fields after initialization."""
        if not self.listing_id:
            raise ValueError("Listing listing_id cannot be empty")
        if not self.listing_url:
            raise ValueError("Listing listing_url cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (datetimes as ISO strings)."""
        data = asdict(self)
        for key in ("posted_at", "scraped_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listing":
        """Build a Listing from ``to_dict`` output, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}

        seller = values.get("seller_info")
        if isinstance(seller, dict):
            values["seller_info"] = SellerInfo(**seller)

        for key in ("posted_at", "scraped_at"):
            if isinstance(values.get(key), str):
                values[key] = datetime.fromisoformat(values[key])
        if values.get("scraped_at") is None:
            values.pop("scraped_at", None)

        return cls(**values)

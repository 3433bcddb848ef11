"""
Search criteria and ranked results.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from findr.domain.entities.listing import Listing


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


@dataclass
class SearchCriteria:
    """
    What the caller is looking for.

    ``min_price <= max_price`` is expected but not enforced here.
    """

    query: str
    location: Optional[str] = None
    radius: Optional[float] = None  # miles
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    category: Optional[str] = None
    limit: int = 50

    def __post_init__(self) -> None:
        """Validate required fields after initialization."""
        if self.query is None:
            raise ValueError("SearchCriteria query cannot be None")
        if self.limit < 1:
            raise ValueError("SearchCriteria limit must be at least 1")

    def normalized(self) -> Dict[str, Any]:
        """Case- and whitespace-insensitive projection used for cache keys."""
        return {
            "query": self.query.strip().lower(),
            "location": _normalize_text(self.location),
            "radius": self.radius,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "category": _normalize_text(self.category),
            "limit": self.limit,
        }


@dataclass
class ScoredListing:
    """A listing paired with its 0-100 relevance score."""

    listing: Listing
    score: float

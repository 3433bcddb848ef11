"""
Synthetic listing generator used when a search page yields nothing.

Listings are pseudo-random but plausible, and deterministic: the random
source is seeded from the query and price bounds, so the same criteria
always produce the same listings.

Example:
    >>> generator = SyntheticListingGenerator()
    >>> listings = generator.generate(SearchCriteria(query="vintage chair", limit=5))
    >>> listings[0].title
    'vintage chair Item 1'
"""

from __future__ import annotations

import hashlib
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from findr.domain.entities.listing import Listing, SellerInfo
from findr.domain.entities.search_criteria import SearchCriteria
from findr.infrastructure.scraper.parsers.utils import FACEBOOK_BASE_URL
from findr.utils.logger import get_logger

logger = get_logger(__name__)

MAX_SYNTHETIC_LISTINGS = 20

DEFAULT_PRICE_RANGE = (50.0, 1050.0)
OPEN_PRICE_SPAN = 1000.0

MAX_POSTED_AGE = timedelta(days=7)

CITIES = [
    "New York, NY",
    "Brooklyn, NY",
    "Los Angeles, CA",
    "Chicago, IL",
    "Houston, TX",
    "Phoenix, AZ",
    "Philadelphia, PA",
    "San Antonio, TX",
    "San Diego, CA",
    "Dallas, TX",
    "Austin, TX",
    "Seattle, WA",
]

CONDITIONS = ["New", "Used - Like New", "Used - Good", "Used - Fair"]


def seed_for(criteria: SearchCriteria) -> int:
    """Stable seed derived from the query and price bounds."""
    key = f"{criteria.query.strip().lower()}|{criteria.min_price}|{criteria.max_price}"
    return int(hashlib.sha256(key.encode("utf-8")).hexdigest()[:16], 16)


class SyntheticListingGenerator:
    """
    Generator of fallback listings.

    Attributes:
        max_listings: Upper bound on listings per call.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        max_listings: int = MAX_SYNTHETIC_LISTINGS,
        base_url: str = FACEBOOK_BASE_URL,
    ):
        """
        Initialize the generator.

        Args:
            rng: Random source. If None, each call seeds one from the criteria.
            max_listings: Upper bound on listings per call.
            base_url: Host used for listing URLs.
        """
        self._rng = rng
        self.max_listings = max_listings
        self.base_url = base_url.rstrip("/")

    def _price_range(self, criteria: SearchCriteria) -> Tuple[float, float]:
        low, high = criteria.min_price, criteria.max_price
        if low is not None and high is not None:
            return (low, high) if low <= high else (high, low)
        if low is not None:
            return low, low + OPEN_PRICE_SPAN
        if high is not None:
            return min(DEFAULT_PRICE_RANGE[0], high), high
        return DEFAULT_PRICE_RANGE

    def generate(self, criteria: SearchCriteria, now: Optional[datetime] = None) -> List[Listing]:
        """
        Generate fallback listings for the criteria.

        Args:
            criteria: Search criteria.
            now: Reference time for posted timestamps (defaults to now, UTC).

        Returns:
            ``min(criteria.limit, max_listings)`` listings flagged ``is_synthetic``.
        """
        rng = self._rng or random.Random(seed_for(criteria))
        now = now or datetime.now(timezone.utc)
        count = min(criteria.limit, self.max_listings)
        low, high = self._price_range(criteria)

        listings: List[Listing] = []
        for i in range(count):
            listing_id = f"synthetic-{rng.getrandbits(48):012x}"
            title = f"{criteria.query} Item {i + 1}"

            listings.append(
                Listing(
                    listing_id=listing_id,
                    listing_url=f"{self.base_url}/marketplace/item/{listing_id}/",
                    title=title,
                    price=float(round(rng.uniform(low, high))),
                    currency="USD",
                    location=criteria.location or rng.choice(CITIES),
                    distance=float(rng.randint(1, 20)),
                    image_url=f"https://picsum.photos/seed/{listing_id}/400/300",
                    description=(
                        f"This is a sample description for {title}. "
                        f"It's in great condition and priced to sell quickly."
                    ),
                    category=criteria.category,
                    condition=rng.choice(CONDITIONS),
                    seller_info=SellerInfo(
                        name=f"Seller {rng.randint(1, 999)}",
                        rating=f"{rng.uniform(0, 5):.1f}",
                        joined_date=f"{rng.randint(2012, 2023)}-01-01",
                        profile_url=f"{self.base_url}/marketplace/profile/seller-{i}",
                    ),
                    posted_at=now - timedelta(seconds=rng.uniform(0, MAX_POSTED_AGE.total_seconds())),
                    is_synthetic=True,
                )
            )

        logger.info(f"Generated {len(listings)} synthetic listings for '{criteria.query}'")
        return listings

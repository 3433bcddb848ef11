"""
Relevance scorer for ranking listings against search criteria.

The final score is a base of 50 plus six independent sub-scores,
clamped to [0, 100]:

    Factor        Range   Neutral
    title         0-30    (0 when title or query is empty)
    price         0-20    10
    distance      0-15    7.5
    recency       0-15    7.5
    description   0-10    5
    seller        0-10    5

Scoring is deterministic: pass ``now`` to pin the clock and identical
inputs always give an identical score.

Example:
    >>> from findr.core.scoring import RelevanceScorer
    >>> scorer = RelevanceScorer()
    >>> scorer.score(listing, criteria, now=datetime.now(timezone.utc))
    87.5
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from findr.domain.entities.listing import Listing, SellerInfo
from findr.domain.entities.search_criteria import SearchCriteria
from findr.utils.logger import get_logger

logger = get_logger(__name__)

BASE_SCORE = 50.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

NEUTRAL_PRICE_SCORE = 10.0
NEUTRAL_DISTANCE_SCORE = 7.5
NEUTRAL_RECENCY_SCORE = 7.5
NEUTRAL_DESCRIPTION_SCORE = 5.0
NEUTRAL_SELLER_SCORE = 5.0

DEFAULT_RADIUS_MILES = 25.0

# (fraction of radius, score), checked in order
DISTANCE_TIERS = ((0.2, 15.0), (0.5, 12.0), (0.8, 9.0), (1.0, 6.0))

# (max age in hours, score), checked in order; older listings score 3
RECENCY_TIERS = ((6, 15.0), (24, 12.0), (72, 9.0), (168, 6.0))
STALE_RECENCY_SCORE = 3.0

# (min keyword match ratio, score), checked in order
DESCRIPTION_TIERS = ((0.8, 10.0), (0.6, 8.0), (0.4, 7.0), (0.2, 6.0))

# (min rating, adjustment), checked in order; lower ratings subtract 1
RATING_TIERS = ((4.5, 5), (4.0, 4), (3.5, 3), (3.0, 2), (2.5, 1))
LOW_RATING_PENALTY = -1


def _keywords(query: str) -> List[str]:
    return [word for word in query.lower().split() if len(word) > 2]


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RelevanceScorer:
    """
    Multi-factor relevance scorer.

    Each sub-score is a public method so callers can explain a ranking.

    Attributes:
        default_radius_miles: Radius used when the criteria gives none.

    Example:
        >>> scorer = RelevanceScorer()
        >>> scorer.price_relevance(50, min_price=50, max_price=200)
        20.0
    """

    def __init__(self, default_radius_miles: float = DEFAULT_RADIUS_MILES):
        """
        Initialize the scorer.

        Args:
            default_radius_miles: Radius used when the criteria gives none.
        """
        self.default_radius_miles = default_radius_miles

    @classmethod
    def from_config(cls, settings=None) -> "RelevanceScorer":
        """
        Create a scorer from config.yaml settings.

        Args:
            settings: AppConfig instance (loaded with get_config() if omitted).
        """
        from findr.utils.config import get_config

        settings = settings or get_config()
        return cls(default_radius_miles=settings.scoring.default_radius_miles)

    def score(
        self,
        listing: Listing,
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> float:
        """
        Compute the relevance score of a listing.

        Args:
            listing: Listing to score.
            criteria: Search criteria it is scored against.
            now: Reference time for recency and seller age (defaults to now, UTC).

        Returns:
            Score in [0, 100].
        """
        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)

        total = (
            BASE_SCORE
            + self.title_relevance(listing.title, criteria.query)
            + self.price_relevance(listing.price, criteria.min_price, criteria.max_price)
            + self.distance_relevance(listing.distance, criteria.radius)
            + self.recency_relevance(listing.posted_at, now)
            + self.description_relevance(listing.description, criteria.query)
            + self.seller_relevance(listing.seller_info, now)
        )

        return max(MIN_SCORE, min(MAX_SCORE, total))

    def title_relevance(self, title: Optional[str], query: Optional[str]) -> float:
        """
        Score how well the title matches the query (0-30).

        15 points if the whole query appears in the title, plus up to 15
        for the fraction of query keywords found in it.
        """
        if not title or not query:
            return 0.0

        normalized_title = title.lower()
        normalized_query = query.lower()

        exact_match_bonus = 15.0 if normalized_query in normalized_title else 0.0

        keyword_score = 0.0
        keywords = _keywords(query)
        if keywords:
            matched = [word for word in keywords if word in normalized_title]
            keyword_score = len(matched) / len(keywords) * 15.0

        return exact_match_bonus + keyword_score

    def price_relevance(
        self,
        price: Optional[float],
        min_price: Optional[float],
        max_price: Optional[float],
    ) -> float:
        """
        Score how well the price fits the requested range (0-20).

        Cheaper is better inside the range; anything outside it scores 0.
        """
        if price is None:
            return NEUTRAL_PRICE_SCORE

        if min_price is None and max_price is None:
            return NEUTRAL_PRICE_SCORE

        if max_price is None:
            if price < min_price:
                return 0.0
            if price <= min_price * 1.2:
                return 20.0
            return 15.0

        if min_price is None:
            if price > max_price:
                return 0.0
            if price <= max_price * 0.8:
                return 20.0
            return 15.0

        if price < min_price or price > max_price:
            return 0.0

        price_range = max_price - min_price
        if price_range <= 0:
            return 20.0

        position = (price - min_price) / price_range
        return 20.0 - position * 10.0

    def distance_relevance(self, distance: Optional[float], radius: Optional[float]) -> float:
        """Score proximity relative to the search radius (0-15)."""
        if distance is None:
            return NEUTRAL_DISTANCE_SCORE

        if radius is None:
            radius = self.default_radius_miles

        for fraction, tier_score in DISTANCE_TIERS:
            if distance <= radius * fraction:
                return tier_score
        return 0.0

    def recency_relevance(self, posted_at: Optional[datetime], now: Optional[datetime] = None) -> float:
        """Score how recently the listing was posted (0-15)."""
        if posted_at is None:
            return NEUTRAL_RECENCY_SCORE

        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        age_hours = (now - _as_utc(posted_at)).total_seconds() / 3600

        for max_age, tier_score in RECENCY_TIERS:
            if age_hours < max_age:
                return tier_score
        return STALE_RECENCY_SCORE

    def description_relevance(self, description: Optional[str], query: Optional[str]) -> float:
        """Score how many query keywords the description mentions (0-10)."""
        if not description or not query:
            return NEUTRAL_DESCRIPTION_SCORE

        keywords = _keywords(query)
        if not keywords:
            return NEUTRAL_DESCRIPTION_SCORE

        normalized_description = description.lower()
        matched = [word for word in keywords if word in normalized_description]
        ratio = len(matched) / len(keywords)

        for min_ratio, tier_score in DESCRIPTION_TIERS:
            if ratio > min_ratio:
                return tier_score
        return NEUTRAL_DESCRIPTION_SCORE

    def seller_relevance(self, seller: Optional[SellerInfo], now: Optional[datetime] = None) -> float:
        """
        Score seller trust from rating and account age (0-10).

        A rating that cannot be read and a join date that cannot be
        parsed leave the score unchanged.
        """
        if seller is None:
            return NEUTRAL_SELLER_SCORE

        seller_score = NEUTRAL_SELLER_SCORE

        rating = seller.rating_value()
        if rating is not None:
            adjustment = LOW_RATING_PENALTY
            for min_rating, tier_adjustment in RATING_TIERS:
                if rating >= min_rating:
                    adjustment = tier_adjustment
                    break
            seller_score += adjustment

        joined_at = seller.joined_at()
        if joined_at is not None:
            now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
            age_years = (now - _as_utc(joined_at)).total_seconds() / 86400 / 365
            if age_years >= 5:
                seller_score += 2
            elif age_years >= 2:
                seller_score += 1
            elif age_years < 0.25:
                seller_score -= 1

        return max(0.0, min(10.0, seller_score))


def calculate_relevance_score(
    listing: Listing,
    criteria: SearchCriteria,
    now: Optional[datetime] = None,
) -> float:
    """
    Score a listing with the default scorer.

    Args:
        listing: Listing to score.
        criteria: Search criteria.
        now: Reference time (defaults to now, UTC).

    Returns:
        Score in [0, 100].
    """
    return RelevanceScorer().score(listing, criteria, now=now)

# Search Listings Use Case
"""
Use case for searching the marketplace and ranking the results.

Runs the marketplace scraper, scores every listing against the search
criteria and returns them best match first.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from findr.core.scoring.relevance_scorer import RelevanceScorer
from findr.domain.entities.search_criteria import ScoredListing, SearchCriteria
from findr.infrastructure.scraper.marketplace_scraper import MarketplaceScraper
from findr.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SearchListingsResult:
    """Result of a ranked search."""
    items: List[ScoredListing] = field(default_factory=list)
    total: int = 0
    used_fallback: bool = False
    message: str = ""


class SearchListingsUseCase:
    """
    Use case for ranked marketplace searches.

    This use case:
    1. Fetches listings through the marketplace scraper
    2. Scores each listing against the criteria
    3. Sorts by score, best first (ties keep page order)
    """

    def __init__(self, scraper: MarketplaceScraper, scorer: Optional[RelevanceScorer] = None):
        """
        Initialize the use case.

        Args:
            scraper: Marketplace scraper used to fetch listings.
            scorer: Relevance scorer. If None, creates one from the scraper's settings.
        """
        self.scraper = scraper
        self.scorer = scorer or RelevanceScorer.from_config(scraper.settings)

    async def execute(
        self,
        criteria: SearchCriteria,
        now: Optional[datetime] = None,
    ) -> SearchListingsResult:
        """
        Search and rank listings.

        Args:
            criteria: Search criteria.
            now: Reference time for scoring (defaults to now, UTC).

        Returns:
            SearchListingsResult with ranked items and metadata.

        Raises:
            AppException: Scraper failures propagate; callers should report
                them as "search failed, try again".
        """
        logger.info(f"Searching listings for '{criteria.query}'")
        listings = await self.scraper.search(criteria)

        if not listings:
            return SearchListingsResult(message="No listings found.")

        scored = [
            ScoredListing(listing=listing, score=self.scorer.score(listing, criteria, now=now))
            for listing in listings
        ]
        # sorted() is stable, so equal scores keep page order
        ranked = sorted(scored, key=lambda item: item.score, reverse=True)

        used_fallback = all(item.listing.is_synthetic for item in ranked)
        if used_fallback:
            message = f"No live results for '{criteria.query}'; showing {len(ranked)} sample listings."
        else:
            message = f"Found {len(ranked)} listings matching '{criteria.query}'."

        logger.info(message)

        return SearchListingsResult(
            items=ranked,
            total=len(ranked),
            used_fallback=used_fallback,
            message=message,
        )

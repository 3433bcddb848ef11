# Use Cases Package
"""
Application use cases (business logic).

Use cases encapsulate the business logic and orchestrate the flow
of data between domain entities, the scraper and the scorer.
"""

from findr.core.use_cases.search_listings import (
    SearchListingsResult,
    SearchListingsUseCase,
)

__all__ = [
    "SearchListingsResult",
    "SearchListingsUseCase",
]

# Scoring Package
"""
Relevance scoring of marketplace listings.

Provides:
- RelevanceScorer: Multi-factor 0-100 score of a listing against criteria
- calculate_relevance_score: Score with the default scorer

Example:
    >>> from findr.core.scoring import RelevanceScorer
    >>>
    >>> scorer = RelevanceScorer()
    >>> score = scorer.score(listing, criteria)
"""

from .relevance_scorer import RelevanceScorer, calculate_relevance_score

__all__ = [
    "RelevanceScorer",
    "calculate_relevance_score",
]

# Domain Entities Package
"""
Core business entities as dataclasses.
"""

from .listing import Listing, SellerInfo
from .search_criteria import ScoredListing, SearchCriteria

__all__ = ["Listing", "SellerInfo", "SearchCriteria", "ScoredListing"]

# Cache Package
"""
In-memory result caching.
"""

from findr.infrastructure.cache.result_cache import CacheEntry, ResultCache

__all__ = ["CacheEntry", "ResultCache"]

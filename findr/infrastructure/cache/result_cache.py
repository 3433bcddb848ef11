"""
In-memory result cache with TTL and capacity eviction.

Expiry is lazy: an expired entry is removed the next time it is touched
(or on the purge that precedes every ``set``), never by a background
sweep. At capacity the oldest *inserted* entry is evicted; reads do not
refresh an entry's position, so this is not an LRU.

Example:
    >>> cache: ResultCache[list] = ResultCache(default_ttl=300, max_size=100)
    >>> cache.set("key", [1, 2, 3])
    >>> cache.get("key")
    [1, 2, 3]
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar, Union

from findr.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and the absolute time (clock seconds) it expires."""
    value: T
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Entries stay valid up to and including ``expires_at``."""
        return now > self.expires_at


class ResultCache(Generic[T]):
    """
    Key-value store with per-entry TTL.

    Concurrent misses for the same key are not collapsed: two callers
    of ``get_or_set`` may both run the factory.

    Attributes:
        default_ttl: Lifetime of entries in seconds when ``set`` gets no TTL.
        max_size: Maximum number of entries held.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_size: int = 100,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Default entry lifetime in seconds.
            max_size: Maximum number of entries.
            clock: Monotonic time source in seconds.
        """
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.default_ttl = float(default_ttl)
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")

    def _valid_entry(self, key: str) -> Optional[CacheEntry[T]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Lifetime in seconds (defaults to ``default_ttl``).
        """
        self._purge_expired()

        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            logger.debug(f"Cache full, evicted oldest entry: {oldest_key}")

        lifetime = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + lifetime)

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if missing or expired."""
        entry = self._valid_entry(key)
        return entry.value if entry is not None else None

    def has(self, key: str) -> bool:
        """Check for a valid entry (an expired one is removed)."""
        return self._valid_entry(key) is not None

    def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Returns:
            True if the key was present.
        """
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def size(self) -> int:
        """Number of valid entries."""
        self._purge_expired()
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Union[T, Awaitable[T]]],
        ttl: Optional[float] = None,
    ) -> T:
        """
        Return the cached value, computing and storing it on a miss.

        Args:
            key: Cache key.
            factory: Sync or async callable producing the value.
            ttl: Lifetime in seconds for a newly stored value.

        Returns:
            Cached or newly generated value.
        """
        entry = self._valid_entry(key)
        if entry is not None:
            return entry.value

        value = factory()
        if inspect.isawaitable(value):
            value = await value

        self.set(key, value, ttl)
        return value

"""
Rate limiters for outbound provider requests.

Two independent algorithms are applied in sequence before every
provider call: a token bucket smooths bursts, a sliding window caps
absolute throughput. Neither raises when over capacity; callers get a
boolean or an awaited delay.

Example:
    >>> bucket = TokenBucketRateLimiter(capacity=5, refill_rate=10 / 60)
    >>> window = SlidingWindowRateLimiter(max_requests=10, window_ms=60_000)
    >>> await bucket.consume_async()
    >>> await window.record_request_async()
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from findr.utils.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]

# Added to sliding-window waits so the oldest timestamp has left the window on wake-up
WINDOW_WAIT_BUFFER_MS = 10.0

# Re-check interval for a bucket that only refills through reset()
NO_REFILL_POLL_SECONDS = 1.0


@dataclass
class RateLimiterConfig:
    """
    Configuration for the limiter pair.

    Attributes:
        capacity: Token bucket size (burst allowance).
        refill_rate: Tokens added per second.
        max_requests: Requests allowed per sliding window.
        window_ms: Sliding window length in milliseconds.
    """
    capacity: float = 5.0
    refill_rate: float = 10 / 60
    max_requests: int = 10
    window_ms: float = 60_000.0


class TokenBucketRateLimiter:
    """
    Token bucket with lazy, continuous refill.

    Tokens are reconciled on each check as
    ``min(capacity, tokens + elapsed_seconds * refill_rate)``, so
    ``0 <= tokens <= capacity`` always holds.

    Attributes:
        capacity: Maximum number of tokens.
        refill_rate: Tokens added per second.

    Example:
        >>> bucket = TokenBucketRateLimiter(capacity=5, refill_rate=0)
        >>> [bucket.consume() for _ in range(6)]
        [True, True, True, True, True, False]
    """

    def __init__(
        self,
        capacity: float,
        refill_rate: float,
        initial_tokens: Optional[float] = None,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize the token bucket.

        Args:
            capacity: Maximum number of tokens.
            refill_rate: Tokens added per second.
            initial_tokens: Starting token count (defaults to full).
            clock: Monotonic time source in seconds.
            sleep: Awaitable sleep used by consume_async (asyncio.sleep if None).
        """
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if refill_rate < 0:
            raise ValueError("refill_rate cannot be negative")

        self.capacity = float(capacity)
        self.refill_rate = float(refill_rate)
        self._clock = clock
        self._sleep = sleep
        start = self.capacity if initial_tokens is None else float(initial_tokens)
        self._tokens = max(0.0, min(self.capacity, start))
        self._last_refill = clock()

        logger.debug(
            f"TokenBucketRateLimiter initialized: capacity={self.capacity}, "
            f"refill_rate={self.refill_rate}/s"
        )

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)
        self._last_refill = now

    def can_consume(self, tokens: float = 1) -> bool:
        """Check whether ``tokens`` could be consumed right now."""
        self._refill()
        return self._tokens >= tokens

    def consume(self, tokens: float = 1) -> bool:
        """
        Consume tokens if available.

        Returns:
            True if consumed, False (state unchanged) otherwise.
        """
        if not self.can_consume(tokens):
            return False
        self._tokens -= tokens
        return True

    async def consume_async(self, tokens: float = 1) -> None:
        """
        Wait until tokens are available, then consume them.

        The wait is an estimate: after sleeping, tokens are deducted
        without a second check. Only the calling task is suspended.
        A bucket with a refill rate of 0 waits until reset() refills it;
        the caller's timeout or cancellation bounds that wait.
        """
        if self.consume(tokens):
            return

        sleep = self._sleep or asyncio.sleep

        if self.refill_rate == 0:
            logger.debug("Token bucket empty with no refill: waiting for reset")
            while not self.consume(tokens):
                await sleep(NO_REFILL_POLL_SECONDS)
            return

        wait_seconds = (tokens - self._tokens) / self.refill_rate
        logger.debug(f"Token bucket empty: waiting {wait_seconds:.2f}s")
        await sleep(wait_seconds)

        self._refill()
        self._tokens = max(0.0, self._tokens - tokens)

    def get_tokens(self) -> float:
        """Current token count after refill."""
        self._refill()
        return self._tokens

    def reset(self) -> None:
        """Refill the bucket to capacity."""
        self._tokens = self.capacity
        self._last_refill = self._clock()


class SlidingWindowRateLimiter:
    """
    Sliding window log limiter.

    Keeps the timestamps of recent requests; any older than
    ``now - window`` are discarded before each count.

    Attributes:
        max_requests: Requests allowed inside one window.
        window_ms: Window length in milliseconds.

    Example:
        >>> window = SlidingWindowRateLimiter(max_requests=1, window_ms=50)
        >>> window.record_request()
        True
        >>> window.record_request()
        False
    """

    def __init__(
        self,
        max_requests: int,
        window_ms: float,
        clock: Clock = time.monotonic,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize the sliding window.

        Args:
            max_requests: Requests allowed inside one window.
            window_ms: Window length in milliseconds.
            clock: Monotonic time source in seconds.
            sleep: Awaitable sleep used by record_request_async (asyncio.sleep if None).
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.max_requests = max_requests
        self.window_ms = float(window_ms)
        self._clock = clock
        self._sleep = sleep
        self._timestamps: List[float] = []

        logger.debug(
            f"SlidingWindowRateLimiter initialized: {max_requests} requests / {self.window_ms:.0f}ms"
        )

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _prune(self) -> float:
        now = self._now_ms()
        window_start = now - self.window_ms
        self._timestamps = [ts for ts in self._timestamps if ts >= window_start]
        return now

    def can_make_request(self) -> bool:
        """Check whether a request fits in the current window."""
        self._prune()
        return len(self._timestamps) < self.max_requests

    def record_request(self) -> bool:
        """
        Record a request if the window allows it.

        Returns:
            True if recorded, False otherwise.
        """
        if not self.can_make_request():
            return False
        self._timestamps.append(self._now_ms())
        return True

    async def record_request_async(self) -> None:
        """
        Wait until the window has room, then record a request.

        Sleeps until the oldest timestamp leaves the window (plus a small
        buffer) and records without re-checking.
        """
        if self.record_request():
            return

        now = self._prune()
        oldest = self._timestamps[0]
        wait_ms = oldest + self.window_ms - now + WINDOW_WAIT_BUFFER_MS
        logger.debug(f"Sliding window full: waiting {wait_ms:.0f}ms")
        await (self._sleep or asyncio.sleep)(wait_ms / 1000.0)

        self._timestamps.append(self._now_ms())

    def get_request_count(self) -> int:
        """Number of requests in the current window."""
        self._prune()
        return len(self._timestamps)

    def get_time_until_next_request(self) -> float:
        """Milliseconds until a request can be made, 0 if one can be made now."""
        if self.can_make_request():
            return 0.0
        now = self._prune()
        return max(0.0, self._timestamps[0] + self.window_ms - now)

    def reset(self) -> None:
        """Forget all recorded requests."""
        self._timestamps.clear()


def create_rate_limiters_from_config(
    settings=None,
    sleep: Optional[Sleep] = None,
) -> Tuple[TokenBucketRateLimiter, SlidingWindowRateLimiter]:
    """
    Create the limiter pair from the application config.

    Args:
        settings: AppConfig instance (loaded with get_config() if omitted).
        sleep: Awaitable sleep shared by both limiters (asyncio.sleep if None).

    Returns:
        (token bucket, sliding window) configured from config.yaml.
    """
    from findr.utils.config import get_config

    if settings is None:
        settings = get_config()

    limits = settings.rate_limit
    config = RateLimiterConfig(
        capacity=limits.max_concurrent_requests,
        refill_rate=limits.requests_per_minute / 60,
        max_requests=limits.requests_per_minute,
        window_ms=60_000.0,
    )

    return (
        TokenBucketRateLimiter(capacity=config.capacity, refill_rate=config.refill_rate, sleep=sleep),
        SlidingWindowRateLimiter(max_requests=config.max_requests, window_ms=config.window_ms, sleep=sleep),
    )

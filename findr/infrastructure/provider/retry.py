"""
Bounded retry with exponential backoff for provider calls.

Example:
    >>> response = await fetch_with_retry(lambda: client.fetch(request))
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from findr.utils.exceptions import ConfigurationError, RateLimitError
from findr.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Errors with their own handling policy; raised on first occurrence
NON_RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (ConfigurationError, RateLimitError)


def get_backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_jitter: float = 0.2,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Calculate the delay before a retry attempt.

    delay = base_delay * (2 ^ attempt) + uniform(0, max_jitter)

    Args:
        attempt: The retry attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_jitter: Upper bound of random jitter in seconds
        rng: Random source (module-level random if omitted)

    Returns:
        Delay in seconds before the retry attempt
    """
    jitter = (rng or random).uniform(0, max_jitter) if max_jitter > 0 else 0.0
    return base_delay * (2 ** attempt) + jitter


async def fetch_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_jitter: float = 0.2,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    rng: Optional[random.Random] = None,
) -> T:
    """
    Run an async operation, retrying failures with exponential backoff.

    The operation is called at most ``max_retries + 1`` times. The first
    success returns immediately. ConfigurationError and RateLimitError
    are raised without retrying.

    Args:
        operation: Async callable taking no arguments
        max_retries: Retries after the first failure
        base_delay: Base of the exponential backoff in seconds
        max_jitter: Upper bound of random jitter in seconds
        sleep: Awaitable sleep function (asyncio.sleep if omitted)
        rng: Random source for jitter

    Returns:
        Result of the first successful call

    Raises:
        Exception: The last exception encountered if all retries are exhausted
    """
    if max_retries < 0:
        raise ValueError("max_retries cannot be negative")

    sleep = sleep or asyncio.sleep
    attempts = max_retries + 1

    for attempt in range(attempts):
        try:
            return await operation()
        except NON_RETRYABLE_ERRORS:
            raise
        except Exception as e:
            if attempt + 1 >= attempts:
                logger.error(f"Provider call failed after {attempts} attempts: {e}")
                raise

            delay = get_backoff_delay(attempt, base_delay, max_jitter, rng)
            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed: {e}. Retrying in {delay:.2f}s"
            )
            await sleep(delay)

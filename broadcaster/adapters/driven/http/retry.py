"""Retry logic for transient HTTP errors on probe requests."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TypeVar

import aiohttp

__all__ = ["retry", "RETRYABLE_ERRORS"]

logger = logging.getLogger(__name__)

# Exceptions considered transient and eligible for retry
RETRYABLE_ERRORS = (
    aiohttp.ClientConnectorError,  # Connection refused, DNS failed
    aiohttp.ClientConnectionError,  # Connection error
    aiohttp.ClientOSError,  # OS-level network error
    aiohttp.ServerTimeoutError,  # Server timeout
    aiohttp.ClientPayloadError,  # Streaming error
)

T = TypeVar("T")
AsyncFn = Callable[..., Awaitable[T]]


def retry(
    times: int = 3,
    delay_sec: tuple[float, ...] = (0.2, 0.5, 1.0),
) -> Callable[[AsyncFn[T]], AsyncFn[T]]:
    """Decorate async HTTP function with exponential backoff retry.

    Only used for reachability probes. Message sends are never retried
    here: a failed send is final for its destination.

    Args:
        times: Number of attempts (1 = no retry).
        delay_sec: Delays between attempts in seconds.

    Returns:
        Decorator function.
    """

    def decorator(func: AsyncFn[T]) -> AsyncFn[T]:
        @wraps(func)
        async def wrapper(*args: object, **kwargs: object) -> T:
            for attempt in range(times):
                try:
                    return await func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt == times - 1:
                        logger.debug(f"Retry exhausted after {times} attempts: {e}")
                        raise
                    delay_idx = min(attempt, len(delay_sec) - 1)
                    logger.debug(f"Transient error ({e}), retrying in {delay_sec[delay_idx]}s")
                    await asyncio.sleep(delay_sec[delay_idx])

            raise RuntimeError("Retry wrapper called with times < 1")

        return wrapper

    return decorator

"""Shared rate-limit cooldown for one broadcast."""

import asyncio
import logging

__all__ = ["Cooldown", "DEFAULT_RETRY_AFTER_MS", "RATE_LIMIT_MARGIN_MS", "get_now_time"]

logger = logging.getLogger(__name__)

# Added on top of the server's retry_after before promotion resumes
RATE_LIMIT_MARGIN_MS = 200
# Used when a 429 carries no retry_after
DEFAULT_RETRY_AFTER_MS = 1000


def get_now_time() -> float:
    """Get current monotonic time in seconds.

    Uses event loop's monotonic clock so the cooldown is immune to
    wall-clock adjustments.

    Returns:
        Current time in seconds (monotonic).
    """
    return asyncio.get_running_loop().time()


class Cooldown:
    """Single optional timer gating promotion of new attempts.

    Arming is idempotent: while armed, further arm() calls neither extend nor
    shorten the deadline. The timer clears itself the first time it is
    observed as elapsed.
    """

    def __init__(self, *, margin_ms: int = RATE_LIMIT_MARGIN_MS) -> None:
        self._margin_ms = margin_ms
        self._deadline: float | None = None

    @property
    def armed(self) -> bool:
        return self._deadline is not None

    def arm(self, retry_after_ms: int) -> bool:
        """Start the cooldown unless one is already running.

        Args:
            retry_after_ms: Wait requested by the server; 0 selects
                DEFAULT_RETRY_AFTER_MS.

        Returns:
            True if this call armed the timer, False if one was already armed.
        """
        if self._deadline is not None:
            return False

        delay_ms = (retry_after_ms or DEFAULT_RETRY_AFTER_MS) + self._margin_ms
        self._deadline = get_now_time() + delay_ms / 1000.0
        logger.debug(f"Cooldown armed for {delay_ms} ms")
        return True

    def remaining(self) -> float:
        """Seconds left before the cooldown elapses (0 when not armed)."""
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - get_now_time())

    def is_blocking(self) -> bool:
        """Poll the timer; clears it once elapsed.

        Returns:
            True while promotion must stay suspended.
        """
        if self._deadline is None:
            return False
        if get_now_time() >= self._deadline:
            self._deadline = None
            logger.debug("Cooldown elapsed, promotion resumed")
            return False
        return True

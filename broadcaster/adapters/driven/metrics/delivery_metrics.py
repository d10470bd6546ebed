"""In-memory sliding-window metrics for message deliveries."""

from __future__ import annotations

import statistics
from collections import deque
from dataclasses import dataclass

from broadcaster.ports.metrics import DeliveryAttemptDto, MetricsPort

__all__ = ["DeliveryMetrics"]

TOO_MANY_REQUESTS = 429


@dataclass(slots=True, frozen=True)
class _Sample:
    """Internal record for one delivery attempt."""

    latency_ms: float
    failed: bool
    status_code: int


class DeliveryMetrics(MetricsPort):
    """Fast, lock-free metrics for async context.

    Tracks:
    - Average latency of a send.
    - Failure rate (non-2xx answers or network failures).
    - Rate-limit answers in the window.
    - Last status code and last reported rate-limit bucket state.
    - Total attempts seen.

    Not thread-safe; create one instance per event loop.
    """

    def __init__(self, *, window_size: int = 100) -> None:
        """Initialize metrics collector.

        Args:
            window_size: Number of recent attempts to keep for statistics.
        """
        self._window: deque[_Sample] = deque(maxlen=window_size)
        self._total_seen: int = 0
        self._remaining: int | None = None
        self._bucket: str | None = None

    def update(self, attempt: DeliveryAttemptDto) -> None:
        """Record a finished delivery attempt.

        Args:
            attempt: Attempt with timing, status and rate-limit info.
        """
        self._window.append(
            _Sample(
                latency_ms=(attempt.finished_at_sec - attempt.started_at_sec) * 1_000.0,
                failed=attempt.is_failed,
                status_code=attempt.status_code or 0,
            )
        )
        self._total_seen += 1
        if attempt.rate_limit.remaining is not None:
            self._remaining = attempt.rate_limit.remaining
        if attempt.rate_limit.bucket is not None:
            self._bucket = attempt.rate_limit.bucket

    def __str__(self) -> str:
        """Return human-readable one-line summary for logging.

        Returns:
            Formatted metrics string.
        """
        if not self._window:
            return "Metrics: waiting for data …"

        n_window = len(self._window)
        failures = sum(1 for s in self._window if s.failed)
        fail_pct = (failures / n_window) * 100
        limited = sum(1 for s in self._window if s.status_code == TOO_MANY_REQUESTS)
        avg_latency = statistics.fmean(s.latency_ms for s in self._window)
        last = self._window[-1]
        remaining = "-" if self._remaining is None else str(self._remaining)

        return (
            f"latency={avg_latency:6.1f} ms | "
            f"status={last.status_code:3d} | "
            f"fail={fail_pct:5.1f}% | "
            f"429s={limited} | "
            f"remaining={remaining} bucket={self._bucket or '-'} | "
            f"win={n_window}/{self._window.maxlen} | "
            f"total={self._total_seen}"
        )

"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["DeliveryAttemptDto", "MetricsPort", "RateLimitInfo"]


@dataclass(slots=True, frozen=True)
class RateLimitInfo:
    """Rate-limit hints reported by the remote API.

    Attributes:
        remaining: Requests left in the current bucket window.
        reset_at: Epoch seconds when the bucket resets.
        bucket: Opaque bucket identifier.
    """

    remaining: int | None = None
    reset_at: float | None = None
    bucket: str | None = None


@dataclass(slots=True, frozen=True)
class DeliveryAttemptDto:
    """Immutable snapshot of a single delivery attempt.

    Attributes:
        destination: Destination id the message was sent to.
        started_at_sec: Monotonic seconds when the request left the process.
        finished_at_sec: Monotonic seconds when the exchange ended.
        status_code: HTTP status code when a response arrived; None otherwise.
        rate_limit: Parsed rate-limit headers of the response.
    """

    destination: int
    started_at_sec: float
    finished_at_sec: float
    status_code: int | None = None
    rate_limit: RateLimitInfo = RateLimitInfo()

    @property
    def is_failed(self) -> bool:
        """True for transport errors and any non-2xx answer."""
        return self.status_code is None or not 200 <= self.status_code < 300


class MetricsPort(Protocol):
    """Interface for recording delivery attempt metrics.

    Implementations must be async-safe and non-blocking.
    """

    def update(self, attempt: DeliveryAttemptDto, /) -> None:
        """Record a finished delivery attempt.

        Args:
            attempt: The attempt to record.
        """
        ...

    def __str__(self) -> str:
        """Return concise textual summary for humans."""
        ...

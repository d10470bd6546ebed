"""Classified results of a single delivery attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "FatalReason",
    "Fatal",
    "Outcome",
    "RateLimited",
    "Rejected",
    "RejectedReason",
    "Success",
    "TransportFailure",
]


class FatalReason(str, Enum):
    """Why a destination can never receive messages again."""

    MISSING_ACCESS = "missing_access"
    MISSING_PERMISSIONS = "missing_permissions"
    UNKNOWN_DESTINATION = "unknown_destination"


class RejectedReason(str, Enum):
    """Non-fatal API rejection kinds."""

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class Success:
    """Message delivered."""


@dataclass(slots=True, frozen=True)
class RateLimited:
    """Remote service asked us to slow down.

    Attributes:
        retry_after_ms: Suggested wait; 0 when the service gave none.
    """

    retry_after_ms: int = 0


@dataclass(slots=True, frozen=True)
class Fatal:
    """Destination is permanently unreachable and must be unsubscribed."""

    reason: FatalReason


@dataclass(slots=True, frozen=True)
class Rejected:
    """API rejected the message for a reason not known to be permanent."""

    reason: RejectedReason


@dataclass(slots=True, frozen=True)
class TransportFailure:
    """Network or IO error before a response was received."""

    error: str = ""


Outcome = Success | RateLimited | Fatal | Rejected | TransportFailure

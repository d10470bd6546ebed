"""Transport port definition (interface, DTO and error)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

__all__ = ["TransportError", "TransportPort", "TransportResponse"]


class TransportError(Exception):
    """Raised when a send could not complete at the network level."""


@dataclass(slots=True, frozen=True)
class TransportResponse:
    """Raw response of one send-message exchange.

    Attributes:
        status: HTTP status code.
        headers: Response headers (case of keys is not normalized).
        body: Raw response body, JSON or opaque bytes.
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


class TransportPort(Protocol):
    """Interface for delivering one message to one destination."""

    async def send(self, destination: int, message: str) -> TransportResponse:
        """Send ``message`` to ``destination``.

        Raises:
            TransportError: On connection or IO failure.
        """
        ...

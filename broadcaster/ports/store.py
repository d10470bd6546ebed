"""Subscriber store port definition (interface and error)."""

from typing import Protocol

__all__ = ["StoreError", "SubscriberStorePort"]


class StoreError(Exception):
    """Raised when the subscriber store cannot complete an operation."""


class SubscriberStorePort(Protocol):
    """Persistent set of subscribed destination ids.

    Implementations must be safe for concurrent use from several tasks.
    """

    async def add(self, destination: int) -> None: ...

    async def remove(self, destination: int) -> None: ...

    async def exists(self, destination: int) -> bool: ...

    async def all(self) -> list[int]: ...

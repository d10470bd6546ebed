"""One delivery of the broadcast message to one destination."""

import asyncio
from collections.abc import Awaitable, Callable

from broadcaster.ports.transport import TransportResponse

__all__ = ["Attempt", "SendFn"]

SendFn = Callable[[int, str], Awaitable[TransportResponse]]


class Attempt:
    """Binds one destination to at most one outstanding transport call.

    The call runs as its own asyncio.Task so the dispatcher can wait on many
    attempts at once. An attempt can be re-issued in place after a rate limit.
    """

    def __init__(self, destination: int, message: str, send_fn: SendFn) -> None:
        self.destination = destination
        self.retries = 0
        self._message = message
        self._send_fn = send_fn
        self._task: asyncio.Task[TransportResponse] | None = None

    def __repr__(self) -> str:
        return f"Attempt(destination={self.destination}, retries={self.retries})"

    @property
    def task(self) -> asyncio.Task[TransportResponse] | None:
        return self._task

    def start(self) -> asyncio.Task[TransportResponse]:
        """Issue the transport call unless one is already outstanding."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._send_fn(self.destination, self._message),
                name=f"send-{self.destination}",
            )
        return self._task

    def reset(self) -> None:
        """Drop the previous call; the next start() issues a fresh one."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.retries += 1

    def retry(self) -> asyncio.Task[TransportResponse]:
        """Drop the previous call and immediately issue a new one."""
        self.reset()
        return self.start()

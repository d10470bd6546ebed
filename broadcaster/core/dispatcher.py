"""Broadcast dispatcher: fan one message out to many destinations."""

import asyncio
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from broadcaster.core.attempt import Attempt
from broadcaster.core.classifier import classify
from broadcaster.core.cooldown import Cooldown, get_now_time
from broadcaster.core.outcome import (
    Fatal,
    Outcome,
    RateLimited,
    Rejected,
    RejectedReason,
    Success,
    TransportFailure,
)
from broadcaster.ports.store import SubscriberStorePort
from broadcaster.ports.transport import TransportError, TransportPort, TransportResponse

__all__ = ["BroadcastReport", "DEFAULT_WINDOW", "Dispatcher"]

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 30


@dataclass(slots=True, frozen=True)
class BroadcastReport:
    """Tally of a finished broadcast.

    Every destination lands in exactly one of delivered, removed, rejected
    or failed. The report never signals failure of the broadcast itself.

    Attributes:
        total: Distinct destinations targeted.
        delivered: Destinations that accepted the message.
        removed: Destinations unsubscribed after a fatal answer.
        rejected: Destinations dropped after a non-fatal API rejection.
        failed: Destinations dropped after a transport error.
        rate_limited: Rate-limit answers seen (one destination may add many).
        cooldowns: Times the shared cooldown was armed.
        duration_sec: Wall time of the broadcast, monotonic seconds.
    """

    total: int = 0
    delivered: int = 0
    removed: int = 0
    rejected: int = 0
    failed: int = 0
    rate_limited: int = 0
    cooldowns: int = 0
    duration_sec: float = 0.0


class Dispatcher:
    """Deliver one message to a set of destinations through one transport.

    A single run() coroutine owns all queue and cooldown state. Deliveries run
    as tasks; at most ``window`` of them are in flight at once. Rate-limited
    deliveries go back to the end of the pending queue and arm one shared
    cooldown during which nothing new is promoted. Fatal answers unsubscribe
    the destination from the store in a detached task.
    """

    def __init__(
        self,
        transport: TransportPort,
        store: SubscriberStorePort,
        *,
        window: int = DEFAULT_WINDOW,
        eager_retry: bool = False,
    ) -> None:
        """Initialize dispatcher.

        Args:
            transport: Sends one message to one destination.
            store: Subscriber store, used only to remove dead destinations.
            window: Maximum number of in-flight deliveries.
            eager_retry: Re-send a rate-limited delivery right away instead of
                when it is promoted again after the cooldown.
        """
        if window < 1:
            raise ValueError("window must be at least 1")
        self.transport = transport
        self.store = store
        self.window = window
        self.eager_retry = eager_retry
        self._background: set[asyncio.Task[None]] = set()

    async def run(self, destinations: Iterable[int], message: str) -> BroadcastReport:
        """Drive every destination to a terminal state.

        Args:
            destinations: Destination ids; duplicates are sent once.
            message: Content shared by every delivery.

        Returns:
            Tally of the finished broadcast.
        """
        started = get_now_time()
        pending: deque[Attempt] = deque(
            Attempt(destination, message, self.transport.send)
            for destination in dict.fromkeys(destinations)
        )
        in_flight: dict[asyncio.Task[TransportResponse], Attempt] = {}
        cooldown = Cooldown()
        tally = {
            "total": len(pending),
            "delivered": 0,
            "removed": 0,
            "rejected": 0,
            "failed": 0,
            "rate_limited": 0,
            "cooldowns": 0,
        }
        logger.info(f"Starting broadcast to {tally['total']} destinations")

        try:
            while pending or in_flight:
                if not cooldown.is_blocking():
                    while pending and len(in_flight) < self.window:
                        attempt = pending.popleft()
                        in_flight[attempt.start()] = attempt

                if not in_flight:
                    # Everything left is parked behind the cooldown
                    await asyncio.sleep(cooldown.remaining())
                    continue

                done, _ = await asyncio.wait(
                    set(in_flight),
                    timeout=cooldown.remaining() if cooldown.armed else None,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                for task in done:
                    attempt = in_flight.pop(task)
                    outcome = self._outcome_of(task)
                    self._route(attempt, outcome, pending, cooldown, tally)
        finally:
            # Only non-empty when run() is left abnormally, e.g. cancelled
            for task in in_flight:
                task.cancel()
            if in_flight:
                await asyncio.gather(*in_flight, return_exceptions=True)

        report = BroadcastReport(**tally, duration_sec=get_now_time() - started)
        logger.info(
            f"Broadcast finished in {report.duration_sec:.1f}s: "
            f"delivered={report.delivered} removed={report.removed} "
            f"rejected={report.rejected} failed={report.failed} "
            f"rate_limited={report.rate_limited}"
        )
        return report

    @staticmethod
    def _outcome_of(task: asyncio.Task[TransportResponse]) -> Outcome:
        """Classify a finished transport task."""
        if task.cancelled():
            return TransportFailure("cancelled")
        exc = task.exception()
        if isinstance(exc, TransportError):
            return TransportFailure(str(exc))
        if exc is not None:
            logger.error("Unexpected error from transport", exc_info=exc)
            return TransportFailure(repr(exc))
        resp = task.result()
        try:
            return classify(resp.status, resp.headers, resp.body)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Cannot classify {resp.status} response: {e!r}", exc_info=True)
            return Rejected(RejectedReason.UNKNOWN)

    def _route(
        self,
        attempt: Attempt,
        outcome: Outcome,
        pending: deque[Attempt],
        cooldown: Cooldown,
        tally: dict[str, int],
    ) -> None:
        destination = attempt.destination

        if isinstance(outcome, Success):
            tally["delivered"] += 1

        elif isinstance(outcome, Fatal):
            tally["removed"] += 1
            logger.info(
                f"Destination {destination} is gone ({outcome.reason.value}), unsubscribing"
            )
            self._unsubscribe(destination)

        elif isinstance(outcome, RateLimited):
            tally["rate_limited"] += 1
            # Back of the queue, never straight back into flight
            if self.eager_retry:
                attempt.retry()
            else:
                attempt.reset()
            pending.append(attempt)
            if cooldown.arm(outcome.retry_after_ms):
                tally["cooldowns"] += 1
            logger.warning(
                f"Rate limited on {destination} (retry_after={outcome.retry_after_ms} ms, "
                f"retry #{attempt.retries})"
            )

        elif isinstance(outcome, Rejected):
            tally["rejected"] += 1
            logger.warning(f"Delivery to {destination} rejected ({outcome.reason.value})")

        else:
            tally["failed"] += 1
            logger.warning(f"Delivery to {destination} failed: {outcome.error}")

    def _unsubscribe(self, destination: int) -> None:
        """Remove a dead destination from the store without awaiting it."""

        async def _remove() -> None:
            try:
                await self.store.remove(destination)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Failed to unsubscribe {destination}: {e}", exc_info=True)
            finally:
                task = asyncio.current_task()
                if task is not None:
                    self._background.discard(task)

        task = asyncio.get_running_loop().create_task(_remove(), name=f"unsubscribe-{destination}")
        self._background.add(task)

    async def drain(self) -> None:
        """Wait for detached unsubscribe tasks still running."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

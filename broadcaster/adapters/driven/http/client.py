"""Discord REST transport adapter with metrics integration."""

import asyncio
import logging
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout

from broadcaster.adapters.driven.http.retry import retry
from broadcaster.core.classifier import parse_rate_limit_headers
from broadcaster.ports.metrics import DeliveryAttemptDto, MetricsPort
from broadcaster.ports.transport import TransportError, TransportResponse

__all__ = ["DEFAULT_API_BASE_URL", "DiscordClient", "USER_AGENT"]

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://discord.com/api/v8"
USER_AGENT = "JohnWickBot(https://wickshopbot.com, 0.1)"
PROBE_RETRIES = 5
PROBE_TIMEOUT = 10
SEND_TIMEOUT = 30


class DiscordClient:
    """Send-message transport backed by one aiohttp session.

    Features:
    - One POST per delivery, no retry (the dispatcher decides what happens next).
    - Rate-limit header parsing and metrics collection.
    - Context manager for proper resource cleanup.
    - Health check/probe functionality.
    """

    def __init__(
        self,
        token: str,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        metrics: MetricsPort | None = None,
        timeout: float = SEND_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bot credential attached to every request.
            api_base_url: REST API root, without trailing slash.
            metrics: Optional metrics collector to track attempts.
            timeout: Total timeout of one send, in seconds.
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.metrics = metrics
        self.timeout = timeout
        self.session: aiohttp.ClientSession | None = None
        self._headers = {
            "Authorization": f"Bot {token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def __aenter__(self) -> "DiscordClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session)."""
        if self.session:
            await self.session.close()

    def message_url(self, destination: int) -> str:
        return f"{self.api_base_url}/channels/{destination}/messages"

    @retry(times=PROBE_RETRIES)
    async def _probe_once(self, url: str, timeout: int = PROBE_TIMEOUT) -> int:
        """Single HTTP GET request for health check (with retry).

        Returns:
            HTTP status code.

        Raises:
            RuntimeError: If session not initialized.
            aiohttp exceptions: Network/timeout errors (retried by decorator).
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")
        async with self.session.get(
            url, timeout=ClientTimeout(total=timeout), allow_redirects=True
        ) as resp:
            return resp.status

    async def probe(self, url: str, timeout: int = PROBE_TIMEOUT) -> bool:
        """Check if HTTP endpoint is reachable.

        Attempts up to PROBE_RETRIES times with exponential backoff.

        Returns:
            True if reachable (200 <= status < 300), False otherwise.
        """
        logger.info(f"Probing endpoint {url}...")
        try:
            status = await self._probe_once(url, timeout)
        except Exception as e:
            logger.warning(f"Probe failed for {url}: {e}")
            return False
        logger.info(f"Probe for {url} returned status {status}")
        return 200 <= status < 300

    async def send(self, destination: int, message: str) -> TransportResponse:
        """POST one message to one channel.

        Args:
            destination: Channel id.
            message: Message content.

        Returns:
            Status, headers and raw body of the response.

        Raises:
            RuntimeError: If session not initialized.
            TransportError: On connection, payload or timeout errors.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            async with self.session.post(
                self.message_url(destination),
                json={"content": message},
                headers=self._headers,
                timeout=ClientTimeout(total=self.timeout),
            ) as resp:
                body = await resp.read()
                response = TransportResponse(
                    status=resp.status,
                    headers=dict(resp.headers),
                    body=body,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._record(destination, started, None)
            raise TransportError(f"Send to {destination} failed: {e!r}") from e

        self._record(destination, started, response)
        return response

    def _record(
        self,
        destination: int,
        started: float,
        response: TransportResponse | None,
    ) -> None:
        if not self.metrics:
            return
        self.metrics.update(
            DeliveryAttemptDto(
                destination=destination,
                started_at_sec=started,
                finished_at_sec=asyncio.get_running_loop().time(),
                status_code=response.status if response else None,
                rate_limit=parse_rate_limit_headers(response.headers if response else None),
            )
        )
        logger.debug(f"Delivery metrics: {self.metrics}")

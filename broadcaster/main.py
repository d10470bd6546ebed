"""Application entrypoint: broadcast one message to every subscriber."""

import asyncio
import logging

from broadcaster.adapters.driven.config.settings import load_settings
from broadcaster.adapters.driven.http.client import DiscordClient
from broadcaster.adapters.driven.logging.logging_config import configure_logs
from broadcaster.adapters.driven.metrics.delivery_metrics import DeliveryMetrics
from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore
from broadcaster.core.dispatcher import BroadcastReport, Dispatcher
from broadcaster.ports.settings import SettingsPort
from broadcaster.ports.store import StoreError, SubscriberStorePort
from broadcaster.ports.transport import TransportPort

__all__ = ["main", "optional_endpoint_health_check", "run_broadcast"]

logger = logging.getLogger(__name__)


async def main() -> None:
    """Run one broadcast.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Open the subscriber store and the transport.
    4. Optionally probe the health endpoint.
    5. Broadcast the message to every subscriber and log the report.
    """
    configure_logs()
    logger.info("Starting broadcaster...")

    try:
        config = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check DISCORD_TOKEN, BROADCAST_MESSAGE (or BROADCAST_MESSAGE_FILE), "
            "CONCURRENCY_WINDOW and API_BASE_URL.",
            exc,
        )
        return

    # Wrap config into port so core depends on interface (hexagonal)
    settings_port = SettingsPort(
        message=config.message,
        concurrency_window=config.concurrency_window,
        eager_retry=config.eager_retry,
        http_health_check_endpoint=config.http_health_endpoint,
    )

    metrics = DeliveryMetrics()
    client = DiscordClient(config.discord_token, api_base_url=config.api_base_url, metrics=metrics)

    try:
        async with SqlSubscriberStore(config.database_url) as store, client as transport:
            if not await optional_endpoint_health_check(settings_port, transport):
                return

            report = await run_broadcast(settings_port, transport, store)
            if report is not None:
                logger.info(f"Delivery metrics: {metrics}")
    except StoreError as e:
        logger.error(f"Subscriber store unavailable: {e}")
        return
    except Exception as e:
        logger.error(f"Unhandled exception in broadcast: {e}", exc_info=True)
        return

    logger.info("Broadcaster stopped.")


async def run_broadcast(
    settings: SettingsPort,
    transport: TransportPort,
    store: SubscriberStorePort,
) -> BroadcastReport | None:
    """Broadcast the configured message to every subscribed destination.

    Waits for detached unsubscribe work before returning so the store is not
    closed under it.

    Args:
        settings: Runtime settings.
        transport: Delivery transport.
        store: Subscriber store.

    Returns:
        The broadcast report, or None when there was nobody to send to.
    """
    try:
        destinations = await store.all()
    except StoreError as e:
        logger.error(f"Cannot load subscribers: {e}")
        return None

    if not destinations:
        logger.info("No subscribed destinations, nothing to broadcast")
        return None

    dispatcher = Dispatcher(
        transport,
        store,
        window=settings.concurrency_window,
        eager_retry=settings.eager_retry,
    )
    report = await dispatcher.run(destinations, settings.message)
    await dispatcher.drain()
    return report


async def optional_endpoint_health_check(settings_port: SettingsPort, http: DiscordClient) -> bool:
    """Perform optional health check before broadcasting.

    Only runs if HEALTH_CHECK_ENDPOINT is configured.

    Args:
        settings_port: Runtime settings.
        http: HTTP client for probing.

    Returns:
        True if healthy or check disabled, False if check failed.
    """
    if settings_port.http_health_check_endpoint:
        logger.info(f"Performing health check on {settings_port.http_health_check_endpoint}...")
        if not await http.probe(url=settings_port.http_health_check_endpoint):
            logger.error(
                f"Health check failed for {settings_port.http_health_check_endpoint}, "
                "aborting broadcast"
            )
            return False

        logger.info("Health check passed, starting broadcast...")
    return True


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")

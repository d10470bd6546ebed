"""Healthcheck validator for container orchestration."""

import asyncio
import logging

from broadcaster.adapters.driven.config.settings import load_settings
from broadcaster.adapters.driven.logging.logging_config import configure_logs
from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore

__all__ = ["check_store", "main"]

logger = logging.getLogger(__name__)


async def check_store(database_url: str) -> int:
    """Open the subscriber store and count its subscribers.

    Creates the schema when missing, the same way a broadcast would.

    Raises:
        StoreError: When the database cannot be reached or queried.
    """
    store = SqlSubscriberStore(database_url)
    try:
        await store.create_schema()
        return len(await store.all())
    finally:
        await store.close()


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - Required environment variables are set.
    - The message file (when used) exists and is readable.
    - The subscriber store at DATABASE_URL is reachable.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        config = load_settings()
    except Exception as exc:
        logger.error(f"Broadcaster healthcheck FAILED: {exc}")
        return 1

    try:
        subscribers = asyncio.run(check_store(config.database_url))
    except Exception as exc:
        logger.error(f"Broadcaster healthcheck FAILED: subscriber store unusable: {exc}")
        return 1

    logger.info(f"Broadcaster healthcheck OK ({subscribers} subscribers)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Subscriber store backed by SQLAlchemy asyncio."""

import logging
from types import TracebackType

from sqlalchemy import BigInteger, Column, MetaData, Table, delete, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from broadcaster.ports.store import StoreError, SubscriberStorePort

__all__ = ["DEFAULT_DATABASE_URL", "SqlSubscriberStore", "channels"]

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///subscribers.db"

metadata = MetaData()

channels = Table(
    "channels",
    metadata,
    Column("discord", BigInteger, primary_key=True, autoincrement=False),
)


class SqlSubscriberStore(SubscriberStorePort):
    """Set of subscribed channel ids in one SQL table.

    Every call opens its own connection from the engine pool, so one instance
    can be shared by concurrent broadcasts and detached unsubscribe tasks.
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL) -> None:
        self.database_url = database_url
        self.engine: AsyncEngine = create_async_engine(database_url)

    async def __aenter__(self) -> "SqlSubscriberStore":
        await self.create_schema()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def create_schema(self) -> None:
        """Create the channels table if missing."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot create schema: {e}") from e

    async def close(self) -> None:
        await self.engine.dispose()

    async def add(self, destination: int) -> None:
        """Subscribe a channel; adding an existing one is a no-op."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(insert(channels).values(discord=destination))
        except IntegrityError:
            logger.debug(f"Channel {destination} already subscribed")
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot subscribe {destination}: {e}") from e

    async def remove(self, destination: int) -> None:
        """Unsubscribe a channel; removing an unknown one is a no-op."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(delete(channels).where(channels.c.discord == destination))
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot unsubscribe {destination}: {e}") from e
        logger.info(f"Channel {destination} unsubscribed")

    async def exists(self, destination: int) -> bool:
        try:
            async with self.engine.connect() as conn:
                count = await conn.scalar(
                    select(func.count())
                    .select_from(channels)
                    .where(channels.c.discord == destination)
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot look up {destination}: {e}") from e
        return bool(count)

    async def all(self) -> list[int]:
        """Return every subscribed channel id, in ascending order."""
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(select(channels.c.discord).order_by(channels.c.discord))
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot list channels: {e}") from e
        return list(result.scalars())

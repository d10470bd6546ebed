"""Tests for the SQL subscriber store."""

import pytest

from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore
from broadcaster.ports.store import StoreError

__all__ = []


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'subscribers.db'}"


@pytest.mark.asyncio
async def test_store_add_and_list(database_url: str) -> None:
    """Added channels are listed in ascending order."""
    async with SqlSubscriberStore(database_url) as store:
        await store.add(300)
        await store.add(100)
        await store.add(200)

        assert await store.all() == [100, 200, 300]


@pytest.mark.asyncio
async def test_store_add_is_idempotent(database_url: str) -> None:
    """Subscribing twice keeps one row."""
    async with SqlSubscriberStore(database_url) as store:
        await store.add(1)
        await store.add(1)

        assert await store.all() == [1]


@pytest.mark.asyncio
async def test_store_exists_and_remove(database_url: str) -> None:
    async with SqlSubscriberStore(database_url) as store:
        await store.add(42)
        assert await store.exists(42) is True

        await store.remove(42)

        assert await store.exists(42) is False
        assert await store.all() == []


@pytest.mark.asyncio
async def test_store_remove_unknown_is_noop(database_url: str) -> None:
    async with SqlSubscriberStore(database_url) as store:
        await store.remove(7)

        assert await store.all() == []


@pytest.mark.asyncio
async def test_store_keeps_large_ids(database_url: str) -> None:
    """Discord snowflakes need 64 bits."""
    snowflake = 795_000_000_000_000_123
    async with SqlSubscriberStore(database_url) as store:
        await store.add(snowflake)

        assert await store.all() == [snowflake]


@pytest.mark.asyncio
async def test_store_persists_between_instances(database_url: str) -> None:
    async with SqlSubscriberStore(database_url) as store:
        await store.add(5)

    async with SqlSubscriberStore(database_url) as store:
        assert await store.exists(5) is True


@pytest.mark.asyncio
async def test_store_wraps_driver_errors(tmp_path) -> None:
    """Database errors surface as StoreError."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'db.sqlite'}"
    store = SqlSubscriberStore(url)

    with pytest.raises(StoreError):
        await store.create_schema()

    await store.close()

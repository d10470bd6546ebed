"""Tests for health check validator."""

from unittest.mock import MagicMock, patch

import pytest

from broadcaster.adapters.driven.config.health_check import check_store, main
from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore
from broadcaster.ports.store import StoreError

__all__ = []


def config_for(database_url: str) -> MagicMock:
    config = MagicMock()
    config.database_url = database_url
    return config


def test_health_check_success(tmp_path) -> None:
    """Health check should return 0 when configuration and store are usable."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'subscribers.db'}"
    with (
        patch("broadcaster.adapters.driven.config.health_check.configure_logs"),
        patch("broadcaster.adapters.driven.config.health_check.load_settings") as mock_load,
    ):
        mock_load.return_value = config_for(url)
        result = main()

    assert result == 0
    assert (tmp_path / "subscribers.db").exists()


def test_health_check_failure_on_config_error() -> None:
    """Health check should return 1 when configuration fails to load."""
    with (
        patch("broadcaster.adapters.driven.config.health_check.configure_logs"),
        patch("broadcaster.adapters.driven.config.health_check.load_settings") as mock_load,
    ):
        mock_load.side_effect = RuntimeError("Invalid configuration")
        result = main()

    assert result == 1


def test_health_check_failure_on_unreachable_store(tmp_path) -> None:
    """Health check should return 1 when the database cannot be opened."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'subscribers.db'}"
    with (
        patch("broadcaster.adapters.driven.config.health_check.configure_logs"),
        patch("broadcaster.adapters.driven.config.health_check.load_settings") as mock_load,
    ):
        mock_load.return_value = config_for(url)
        result = main()

    assert result == 1


@pytest.mark.asyncio
async def test_check_store_counts_subscribers(tmp_path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'subscribers.db'}"
    async with SqlSubscriberStore(url) as store:
        await store.add(1)
        await store.add(2)

    assert await check_store(url) == 2


@pytest.mark.asyncio
async def test_check_store_raises_store_error(tmp_path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'subscribers.db'}"
    with pytest.raises(StoreError):
        await check_store(url)

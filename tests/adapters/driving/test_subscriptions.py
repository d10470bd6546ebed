"""Tests for the subscription command line."""

import asyncio
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from broadcaster.adapters.driven.store.sql_store import SqlSubscriberStore
from broadcaster.adapters.driving.subscriptions import app

__all__ = []

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_log_handlers():
    with patch("broadcaster.adapters.driving.subscriptions.configure_logs"):
        yield


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'subscribers.db'}"


def stored(database_url: str) -> list[int]:
    async def _all() -> list[int]:
        async with SqlSubscriberStore(database_url) as store:
            return await store.all()

    return asyncio.run(_all())


def invoke(database_url: str, *args: str):
    return runner.invoke(app, list(args), env={"DATABASE_URL": database_url})


def test_subscribe_adds_channel(database_url: str) -> None:
    result = invoke(database_url, "subscribe", "42")

    assert result.exit_code == 0
    assert "Channel 42 will receive broadcasts" in result.output
    assert stored(database_url) == [42]


def test_subscribe_twice_keeps_one_entry(database_url: str) -> None:
    invoke(database_url, "subscribe", "42")
    result = invoke(database_url, "subscribe", "42")

    assert result.exit_code == 0
    assert stored(database_url) == [42]


def test_unsubscribe_removes_channel(database_url: str) -> None:
    invoke(database_url, "subscribe", "1")
    invoke(database_url, "subscribe", "2")

    result = invoke(database_url, "unsubscribe", "1")

    assert result.exit_code == 0
    assert "stop sending messages to channel 1" in result.output
    assert stored(database_url) == [2]


def test_unsubscribe_unknown_channel(database_url: str) -> None:
    result = invoke(database_url, "unsubscribe", "7")

    assert result.exit_code == 0
    assert "Channel 7 was not subscribed" in result.output


def test_check_exit_code_reflects_subscription(database_url: str) -> None:
    invoke(database_url, "subscribe", "5")

    subscribed = invoke(database_url, "check", "5")
    missing = invoke(database_url, "check", "6")

    assert subscribed.exit_code == 0
    assert "Channel 5 is subscribed" in subscribed.output
    assert missing.exit_code == 1
    assert "Channel 6 is not subscribed" in missing.output


def test_list_prints_channels_in_order(database_url: str) -> None:
    for channel in ("30", "10", "20"):
        invoke(database_url, "subscribe", channel)

    result = invoke(database_url, "list")

    assert result.exit_code == 0
    assert result.output.split() == ["10", "20", "30"]


def test_list_empty_store(database_url: str) -> None:
    result = invoke(database_url, "list")

    assert result.exit_code == 0
    assert "No subscribed channels" in result.output


def test_database_url_option_overrides_env(database_url: str, tmp_path) -> None:
    other = f"sqlite+aiosqlite:///{tmp_path / 'other.db'}"

    result = runner.invoke(
        app, ["--database-url", other, "subscribe", "9"], env={"DATABASE_URL": database_url}
    )

    assert result.exit_code == 0
    assert stored(other) == [9]
    assert stored(database_url) == []


def test_store_error_exits_nonzero(tmp_path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'subscribers.db'}"

    result = invoke(url, "subscribe", "1")

    assert result.exit_code == 1
    assert "Subscriber store error" in result.output


def test_rejects_non_positive_channel(database_url: str) -> None:
    result = invoke(database_url, "subscribe", "0")

    assert result.exit_code != 0

"""Tests for console logging setup."""

import logging

import pytest

from broadcaster.adapters.driven.logging.logging_config import configure_logs

__all__ = []


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    root_level = root.level
    app_level = logging.getLogger("broadcaster").level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    logging.getLogger("broadcaster").setLevel(app_level)


def own_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, "_broadcaster", False)]


def test_configure_logs_defaults() -> None:
    configure_logs()

    assert len(own_handlers()) == 1
    assert logging.getLogger("broadcaster").level == logging.DEBUG
    assert logging.getLogger("sqlalchemy").level == logging.WARNING
    assert logging.getLogger("aiohttp").level == logging.WARNING


def test_configure_logs_twice_installs_one_handler() -> None:
    """Health check and entrypoint may both configure logging in one process."""
    configure_logs()
    configure_logs()

    assert len(own_handlers()) == 1


def test_configure_logs_level_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    configure_logs()

    assert logging.getLogger("broadcaster").level == logging.WARNING


def test_configure_logs_explicit_level_wins(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    configure_logs("INFO")

    assert logging.getLogger("broadcaster").level == logging.INFO


def test_configure_logs_unknown_level_falls_back() -> None:
    configure_logs("LOUD")

    assert logging.getLogger("broadcaster").level == logging.DEBUG

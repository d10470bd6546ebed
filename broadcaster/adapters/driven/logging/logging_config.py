"""Console logging setup for the broadcaster."""

import logging
import os

__all__ = ["configure_logs"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%d/%m/%y %H:%M:%S"

# Chatty below WARNING: per-request, per-statement and per-connection lines
_QUIET_LOGGERS = ("aiohttp", "asyncio", "sqlalchemy", "aiosqlite")


def configure_logs(level: str | None = None) -> None:
    """Configure console logging.

    Sets up:
    - Root logger at INFO level, with one console handler.
    - aiohttp, asyncio, sqlalchemy and aiosqlite loggers at WARNING level.
    - The broadcaster logger at ``level``, else LOG_LEVEL, else DEBUG.
      An unknown level name falls back to DEBUG with a warning.

    Calling it again only re-applies levels; no second handler is added.

    Args:
        level: Level name for the broadcaster logger, e.g. "INFO".
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not any(getattr(h, "_broadcaster", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler._broadcaster = True
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app_level = (level or os.getenv("LOG_LEVEL") or "DEBUG").upper()
    app_logger = logging.getLogger("broadcaster")
    if isinstance(logging.getLevelName(app_level), int):
        app_logger.setLevel(app_level)
    else:
        app_logger.setLevel(logging.DEBUG)
        app_logger.warning(f"Unknown log level {app_level!r}, using DEBUG")

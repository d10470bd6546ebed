"""Configuration loading from environment variables and files."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, HttpUrl, TypeAdapter, field_validator

from broadcaster.adapters.driven.http.client import DEFAULT_API_BASE_URL
from broadcaster.adapters.driven.store.sql_store import DEFAULT_DATABASE_URL
from broadcaster.core.dispatcher import DEFAULT_WINDOW

__all__ = ["Settings", "load_database_url", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)
_http_url_adapter = TypeAdapter(HttpUrl)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _validate_url(v: str, what: str) -> str:
    try:
        url = _http_url_adapter.validate_python(v)
        if url.scheme not in ("http", "https"):
            raise ValueError("Only http(s):// endpoints allowed")
    except Exception as e:
        raise ValueError(f"Invalid {what}: {e}") from e
    return v


class Settings(BaseModel):
    """Runtime configuration for one broadcast run.

    Attributes:
        discord_token: Bot credential attached to every request.
        message: Content delivered to every subscriber.
        database_url: SQLAlchemy async URL of the subscriber store.
        api_base_url: REST API root.
        concurrency_window: Maximum in-flight deliveries.
        eager_retry: Re-send rate-limited deliveries before requeueing them.
        http_health_endpoint: Optional endpoint to probe before broadcasting.
    """

    discord_token: str = Field(..., min_length=1, description="Bot token.")
    message: str = Field(..., description="Message content to broadcast.")
    database_url: str = Field(default=DEFAULT_DATABASE_URL, description="Subscriber store URL.")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="REST API root.")
    concurrency_window: int = Field(
        default=DEFAULT_WINDOW, gt=0, description="Maximum in-flight deliveries."
    )
    eager_retry: bool = Field(
        default=False,
        description="Re-send a rate-limited delivery immediately instead of after the cooldown.",
    )
    http_health_endpoint: str | None = Field(
        default=None,
        description=(
            "Optional HTTP endpoint to probe for health. "
            "If not set, no health check is performed."
        ),
    )

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject messages that are empty once whitespace is stripped."""
        if not v.strip():
            raise ValueError("Broadcast message is empty")
        return v

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate that the API root is a valid HTTP(S) URL."""
        return _validate_url(v, "API base URL")

    @field_validator("http_health_endpoint")
    @classmethod
    def validate_http_health_endpoint(cls, v: str | None) -> str | None:
        """Validate that health endpoint (if provided) is a valid HTTP(S) URL."""
        if v is None:
            return v
        return _validate_url(v, "health endpoint")


def _read_message_file(path: str) -> str:
    """Read the broadcast message from a UTF-8 text file.

    Raises:
        ValueError: If the file is missing or not valid UTF-8.
    """
    try:
        return Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ValueError(f"Message file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ValueError(f"Message file is not valid UTF-8: {path}") from e


def _parse_bool(name: str, raw: str | None) -> bool:
    if raw is None:
        return False
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{name} must be a boolean (got: {raw})")


def load_database_url() -> str:
    """Read DATABASE_URL for tools that only touch the subscriber store.

    Unlike load_settings(), no bot token or message is required.
    """
    return os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def load_settings() -> Settings:
    """Load and validate settings from environment and files.

    Required environment variables:
    - DISCORD_TOKEN: Bot token.
    - BROADCAST_MESSAGE, or BROADCAST_MESSAGE_FILE with the path of a text file.

    Optional:
    - DATABASE_URL: Subscriber store URL (default: local SQLite file).
    - API_BASE_URL: REST API root.
    - CONCURRENCY_WINDOW: Positive integer, maximum in-flight deliveries.
    - EAGER_RATE_LIMIT_RETRY: Boolean, see Settings.eager_retry.
    - HEALTH_CHECK_ENDPOINT: URL to probe before broadcasting.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing or invalid.
        ValueError: If configuration is invalid.
    """
    try:
        token = os.environ["DISCORD_TOKEN"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    message = os.getenv("BROADCAST_MESSAGE")
    if message is None:
        message_file = os.getenv("BROADCAST_MESSAGE_FILE")
        if message_file is None:
            raise RuntimeError(
                "Missing required environment variable: BROADCAST_MESSAGE "
                "(or BROADCAST_MESSAGE_FILE)"
            )
        message = _read_message_file(message_file)

    window_raw = os.getenv("CONCURRENCY_WINDOW", str(DEFAULT_WINDOW))
    try:
        window = int(window_raw)
        if window <= 0:
            raise ValueError("Must be positive")
    except ValueError as e:
        raise RuntimeError(
            f"CONCURRENCY_WINDOW must be a positive integer (got: {window_raw})"
        ) from e

    settings = Settings(
        discord_token=token,
        message=message,
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        api_base_url=os.getenv("API_BASE_URL", DEFAULT_API_BASE_URL),
        concurrency_window=window,
        eager_retry=_parse_bool("EAGER_RATE_LIMIT_RETRY", os.getenv("EAGER_RATE_LIMIT_RETRY")),
        http_health_endpoint=os.getenv("HEALTH_CHECK_ENDPOINT"),
    )

    logger.info(
        f"Broadcaster configured: api={settings.api_base_url}, "
        f"window={settings.concurrency_window}, "
        f"eager_retry={settings.eager_retry}, "
        f"message_length={len(settings.message)}, "
        f"health_check={settings.http_health_endpoint or '<disabled>'}"
    )

    return settings

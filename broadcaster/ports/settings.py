"""Settings port definition (DTO)."""

from dataclasses import dataclass

__all__ = ["SettingsPort"]


@dataclass
class SettingsPort:
    """Runtime settings for one broadcast run.

    Decouples the entrypoint and core from concrete configuration sources.

    Attributes:
        message: Content delivered to every subscribed destination.
        concurrency_window: Maximum in-flight deliveries per broadcast.
        eager_retry: Re-send rate-limited deliveries before requeueing them.
        http_health_check_endpoint: Optional URL to probe before broadcasting.
    """

    message: str
    concurrency_window: int = 30
    eager_retry: bool = False
    http_health_check_endpoint: str | None = None

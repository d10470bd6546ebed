"""Tests for delivery metrics collection."""

from broadcaster.adapters.driven.metrics.delivery_metrics import DeliveryMetrics
from broadcaster.ports.metrics import DeliveryAttemptDto, RateLimitInfo

__all__ = []


def attempt(status: int | None = 200, latency: float = 0.0, **rate_limit) -> DeliveryAttemptDto:
    return DeliveryAttemptDto(
        destination=1,
        started_at_sec=100.0,
        finished_at_sec=100.0 + latency,
        status_code=status,
        rate_limit=RateLimitInfo(**rate_limit),
    )


def test_metrics_initialization() -> None:
    """Metrics should initialize with empty window."""
    assert str(DeliveryMetrics()) == "Metrics: waiting for data …"


def test_metrics_records_attempt() -> None:
    """Metrics should record delivery attempts."""
    metrics = DeliveryMetrics(window_size=10)
    metrics.update(attempt(200))

    output = str(metrics)
    assert "waiting for data" not in output
    assert "status=200" in output


def test_metrics_calculates_latency() -> None:
    """Metrics should average send latency in milliseconds."""
    metrics = DeliveryMetrics(window_size=10)
    metrics.update(attempt(200, latency=0.1))
    metrics.update(attempt(200, latency=0.3))

    assert "latency= 200.0 ms" in str(metrics)


def test_metrics_tracks_failures_and_rate_limits() -> None:
    """Non-2xx answers and transport errors count as failures."""
    metrics = DeliveryMetrics(window_size=10)

    for _ in range(6):
        metrics.update(attempt(200))
    metrics.update(attempt(429))
    metrics.update(attempt(429))
    metrics.update(attempt(403))
    metrics.update(attempt(None))

    output = str(metrics)
    assert "fail= 40.0%" in output
    assert "429s=2" in output
    assert "status=  0" in output


def test_metrics_keeps_last_rate_limit_hints() -> None:
    """The last reported remaining count and bucket are shown."""
    metrics = DeliveryMetrics()
    metrics.update(attempt(200, remaining=4, bucket="abc"))
    metrics.update(attempt(200))

    assert "remaining=4 bucket=abc" in str(metrics)


def test_metrics_respects_window_size() -> None:
    """Metrics should maintain sliding window of specified size."""
    metrics = DeliveryMetrics(window_size=5)

    for _ in range(10):
        metrics.update(attempt(200))

    output = str(metrics)
    assert "win=5/5" in output
    assert "total=10" in output

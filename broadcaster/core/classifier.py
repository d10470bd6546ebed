"""Map raw send-message responses to actionable outcomes."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any

from broadcaster.core.outcome import (
    Fatal,
    FatalReason,
    Outcome,
    RateLimited,
    Rejected,
    RejectedReason,
    Success,
)
from broadcaster.ports.metrics import RateLimitInfo

__all__ = [
    "MISSING_ACCESS_CODE",
    "MISSING_PERMISSIONS_CODE",
    "UNKNOWN_CHANNEL_CODE",
    "classify",
    "parse_rate_limit_headers",
]

logger = logging.getLogger(__name__)

# JSON error codes of the remote API that mean "never try again"
MISSING_ACCESS_CODE = 50001
MISSING_PERMISSIONS_CODE = 50013
UNKNOWN_CHANNEL_CODE = 10003

_FORBIDDEN_CODES = {
    MISSING_ACCESS_CODE: FatalReason.MISSING_ACCESS,
    MISSING_PERMISSIONS_CODE: FatalReason.MISSING_PERMISSIONS,
}
_NOT_FOUND_CODES = {
    UNKNOWN_CHANNEL_CODE: FatalReason.UNKNOWN_DESTINATION,
}


def _parse_body(body: bytes | str | Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    """Decode a response body into a JSON object, or None if it is not one."""
    if body is None:
        return None
    if isinstance(body, Mapping):
        return body
    try:
        data = json.loads(body)
    except (ValueError, TypeError, RecursionError) as e:
        logger.debug(f"Response body is not JSON: {e}")
        return None
    return data if isinstance(data, dict) else None


def _error_code(data: Mapping[str, Any] | None) -> int | None:
    if data is None:
        return None
    code = data.get("code")
    # bool is an int subclass; a JSON true is not an error code
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    return code


def _retry_after_ms(data: Mapping[str, Any] | None) -> int:
    if data is None:
        return 0
    value = data.get("retry_after")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    return int(value * 1000)


def classify(
    status: int,
    headers: Mapping[str, str] | None = None,
    body: bytes | str | Mapping[str, Any] | None = None,
) -> Outcome:
    """Classify one send-message response.

    An unparsable or unexpected body never raises: the result falls back to
    what the status code alone implies.

    Args:
        status: HTTP status code.
        headers: Response headers. Only used for observability elsewhere;
            accepted here so callers can pass the whole response.
        body: Raw body bytes/text, or an already decoded JSON object.

    Returns:
        The outcome driving the dispatcher's next action.
    """
    if status == 200:
        return Success()

    if status == 403:
        reason = _FORBIDDEN_CODES.get(_error_code(_parse_body(body)))
        return Fatal(reason) if reason else Rejected(RejectedReason.FORBIDDEN)

    if status == 404:
        reason = _NOT_FOUND_CODES.get(_error_code(_parse_body(body)))
        return Fatal(reason) if reason else Rejected(RejectedReason.NOT_FOUND)

    if status == 429:
        return RateLimited(retry_after_ms=_retry_after_ms(_parse_body(body)))

    return Rejected(RejectedReason.UNKNOWN)


def _header_number(headers: Mapping[str, str], name: str) -> float | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparsable {name} header: {raw!r}")
        return None
    return value if math.isfinite(value) else None


def parse_rate_limit_headers(headers: Mapping[str, str] | None) -> RateLimitInfo:
    """Extract X-RateLimit-* hints from response headers.

    Header names are matched case-insensitively.

    Args:
        headers: Response headers.

    Returns:
        Parsed hints; missing or unparsable values are None.
    """
    if not headers:
        return RateLimitInfo()
    lowered = {k.lower(): v for k, v in headers.items()}

    remaining = _header_number(lowered, "x-ratelimit-remaining")
    reset_at = _header_number(lowered, "x-ratelimit-reset")
    bucket = lowered.get("x-ratelimit-bucket") or None

    return RateLimitInfo(
        remaining=int(remaining) if remaining is not None else None,
        reset_at=reset_at,
        bucket=bucket,
    )

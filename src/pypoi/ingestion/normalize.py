"""Normalization helpers.

Centralizes defensive parsing of feed values and timestamps.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, tzinfo
from typing import Any

from pypoi._constants import FEED_TIMESTAMP_FORMAT


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def round_one_decimal(value: float) -> float:
    """Round to one decimal place, halves away from zero.

    ``round()`` uses banker's rounding, which would turn ``0.25`` into
    ``0.2``; sensor readings are expected to round like a thermometer.
    """
    return math.copysign(math.floor(abs(value) * 10.0 + 0.5), value) / 10.0


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_rfc3339(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Returns ``None`` for empty, unparseable or offset-less values.
    """
    text = safe_str(value)
    if text is None:
        return None
    try:
        parsed = datetime.fromisoformat(text.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed.astimezone(UTC)


def parse_feed_timestamp(value: Any, tz: tzinfo) -> datetime | None:
    """Parse a feed ``created``/``updated`` value local to *tz*.

    The feed writes ``YYYY-MM-DD HH:MM:SS`` without an offset.  A value
    that does not match is treated as absent rather than as an error.
    """
    text = safe_str(value)
    if text is None:
        return None
    try:
        naive = datetime.strptime(text.strip(), FEED_TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return naive.replace(tzinfo=tz).astimezone(UTC)

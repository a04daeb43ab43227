"""Unified timestamp parsing utilities for llm-unify.

Handles the timestamp formats found in provider exports:
- Unix epoch as int/float (ChatGPT ``create_time``)
- Unix epoch as string
- ISO 8601 strings, with or without a trailing ``Z``

All operations use UTC to avoid DST ambiguity issues.
"""

from __future__ import annotations

from datetime import datetime, timezone


def as_utc(ts: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value: object) -> datetime | None:
    """Parse a timestamp from various formats to a UTC-aware datetime.

    Returns None if the value is absent or cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(float(value), tz=timezone.utc)

        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.replace(".", "", 1).isdigit():
                return datetime.fromtimestamp(float(text), tz=timezone.utc)
            return as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except (ValueError, OSError, OverflowError):
        # OSError/OverflowError for out-of-range epochs
        return None

    return None


def format_timestamp(ts: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 string in UTC.

    Stored timestamps share one offset, so lexical order equals chronological
    order in SQL ``ORDER BY``.
    """
    if ts is None:
        return None
    return as_utc(ts).isoformat()


__all__ = ["as_utc", "format_timestamp", "parse_timestamp"]

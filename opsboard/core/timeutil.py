"""Timestamp parsing and human-readable durations.

Every function here tolerates malformed input: a missing or unparseable
timestamp degrades to ``None`` or ``"unknown"`` and never raises.
"""

from __future__ import annotations

from datetime import datetime, timezone

UNKNOWN = "unknown"


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``.  Naive values are read as UTC.  Returns
    ``None`` for missing, empty, or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_duration(
    started_at: str | datetime | None,
    completed_at: str | datetime | None,
) -> str:
    """Format the span between two timestamps.

    ``"{h}h {m}m"`` for an hour or more, otherwise ``"{m}m {s}s"``.
    Returns ``"unknown"`` if either end is missing or unparseable, or if
    the span is negative.
    """
    start = parse_timestamp(started_at)
    end = parse_timestamp(completed_at)
    if start is None or end is None:
        return UNKNOWN

    total_seconds = int((end - start).total_seconds())
    if total_seconds < 0:
        return UNKNOWN

    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours >= 1:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {seconds}s"


def time_ago(value: str | datetime | None, now: datetime) -> str:
    """Relative age of *value* as seen from *now*."""
    then = parse_timestamp(value)
    reference = parse_timestamp(now)
    if then is None or reference is None:
        return UNKNOWN

    minutes = int((reference - then).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    return f"{minutes // 60}h {minutes % 60}m ago"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

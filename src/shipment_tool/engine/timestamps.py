"""
Timestamp parsing for tracking events.

Events arrive with ISO strings, datetimes, epoch milliseconds, or nothing at all.
Everything is normalized to a timezone-aware UTC datetime; anything that cannot
be read becomes the Unix epoch so it sorts first.
"""
from datetime import datetime, timezone
from typing import Any

from dateutil import parser

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse a raw event timestamp into an aware UTC datetime (epoch on failure)."""
    if value is None or isinstance(value, bool):
        return EPOCH

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds, as stored by the web client
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return EPOCH
    else:
        text = str(value).strip()
        if not text:
            return EPOCH
        try:
            dt = parser.parse(text)
        except (ValueError, OverflowError):
            return EPOCH

    if dt.tzinfo is None:
        # assume already UTC if no tz given
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # offset pushes the instant outside the representable range
        return EPOCH


def format_timestamp(dt: datetime) -> str:
    """Render as ISO 8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

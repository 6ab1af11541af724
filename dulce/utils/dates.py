"""
Timestamp coercion helpers.

Documents coming out of the store carry dates in whatever shape the writer
used: ISO strings, epoch seconds/milliseconds, datetime objects or native
store timestamp objects. Everything is normalized to aware UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_datetime(value: Any) -> datetime:
    """
    Convert any supported date representation to an aware UTC datetime.

    None and empty values map to the epoch.
    """
    if value is None or value == "":
        return EPOCH

    # Native store timestamps (e.g. Firestore DatetimeWithNanoseconds wrappers)
    for attr in ("to_datetime", "toDate"):
        converter = getattr(value, attr, None)
        if callable(converter):
            value = converter()
            break

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, (int, float)):
        # Treat large values as epoch milliseconds
        seconds = value / 1000 if value > 1e11 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    raise ValueError(f"Unsupported date value: {value!r}")


def to_iso_date(value: Any) -> str:
    """Convert to an ISO calendar date string (YYYY-MM-DD)."""
    return to_datetime(value).date().isoformat()


def to_iso_string(value: Any) -> str:
    """Convert to a full ISO 8601 string."""
    return to_datetime(value).isoformat()


def format_http_date(dt: datetime) -> str:
    """Format a datetime as an HTTP date (RFC 7231)."""
    return dt.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT")

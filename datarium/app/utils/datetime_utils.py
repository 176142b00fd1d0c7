"""
Date and time utilities for Datarium.

Provides timezone-aware datetime helpers used for event timestamps.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        datetime: Current datetime in UTC with tzinfo set to timezone.utc

    Note:
        Always use this function instead of datetime.now() to ensure
        timezone-aware timestamps across the application.
    """
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string (e.g. 2025-06-01T12:30:00.123456+00:00)."""
    return utcnow().isoformat()


def parse_ISO_datetime(v) -> datetime:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Accepts datetime objects (naive values are assumed UTC) and strings,
    including the trailing 'Z' form produced by JavaScript's toISOString().

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
        TypeError: If the input is neither str nor datetime
    """
    if isinstance(v, datetime):
        parsed = v
    elif isinstance(v, str):
        text = v.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Input must be an ISO-8601 timestamp. Error: {e}")
    else:
        raise TypeError(f"Input must be a str or datetime, got {type(v)}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

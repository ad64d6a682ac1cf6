"""
Timestamp helpers (internal).

Timestamps travel as ISO-8601 strings so that hashes stay byte-stable.
They are parsed only to compare them; naive values are taken as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` as well as explicit offsets.

    Raises:
        TypeError: If *value* is neither a string nor a datetime.
        ValueError: If the string is not a valid ISO-8601 timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise TypeError(f"Expected ISO-8601 string or datetime, got {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: str | datetime) -> str:
    """
    Render a timestamp in canonical form: ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC).

    Example:
        >>> format_timestamp("2024-01-15T13:00:00+01:00")
        '2024-01-15T12:00:00.000Z'
    """
    parsed = parse_timestamp(value)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def is_timestamp(value: object) -> bool:
    """Return True if *value* is a string that parses as an ISO-8601 timestamp."""
    if not isinstance(value, str):
        return False
    try:
        parse_timestamp(value)
    except ValueError:
        return False
    return True

"""Date/time helpers for values that feed the signed string and URLs."""

import re
from datetime import datetime, timezone
from typing import Optional

ISO8601_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_ISO8601_PATTERN = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})T(?P<hour>\d{2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:\.(?P<fraction>\d{1,7}))?)?Z$"
)


def to_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC. Naive datetimes are assumed to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_string(value: Optional[datetime]) -> str:
    """
    Format a datetime as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC.

    Args:
        value: Datetime to format, or None

    Returns:
        ISO-8601 UTC string, or an empty string if ``value`` is None
    """
    if value is None:
        return ""
    return to_utc(value).strftime(ISO8601_FORMAT)


def parse_iso8601(value: str) -> datetime:
    """
    Parse a UTC ISO-8601 timestamp as the service writes it.

    Accepts minute precision (``2012-01-04T23:21Z``), second precision and
    one to seven fractional digits. Digits beyond microseconds are dropped.

    Raises:
        ValueError: If the string is not in one of those forms
    """
    match = _ISO8601_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid date string: {value}")

    fraction = (match.group("fraction") or "").ljust(6, "0")[:6]
    parsed = datetime.strptime(
        f"{match.group('date')}T{match.group('hour')}:{match.group('minute')}:"
        f"{match.group('second') or '00'}",
        "%Y-%m-%dT%H:%M:%S",
    )
    return parsed.replace(microsecond=int(fraction), tzinfo=timezone.utc)

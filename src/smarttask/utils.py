from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Union

# Accepted inputs for any timestamp entering the core
TimestampInput = Union[date, datetime, str]


# PUBLIC_INTERFACE
def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC datetime.

    Naive datetimes are interpreted as UTC; aware ones are converted.
    """
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _checked_utc(value: datetime) -> datetime:
    try:
        return to_utc(value)
    except OverflowError as e:
        raise ValueError("Timestamp is out of range once converted to UTC.") from e


# PUBLIC_INTERFACE
def parse_timestamp(value: TimestampInput) -> datetime:
    """
    Normalize timestamp input into an aware UTC datetime.
    - datetime: converted via to_utc.
    - date (not datetime): promoted to 00:00 UTC on that day.
    - str: ISO-8601 date or datetime; a trailing 'Z' designates UTC.

    Raises:
        ValueError: if the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, datetime):
        return _checked_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "Invalid timestamp format. Use an ISO8601 date or datetime string "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00Z')."
                ) from e
            return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
        return _checked_utc(parsed)

    raise ValueError("Invalid type for timestamp; expected date, datetime, or ISO8601 string.")


# PUBLIC_INTERFACE
def format_timestamp(value: datetime) -> str:
    """
    Serialize a datetime as a fixed-width UTC ISO-8601 string.

    Every output has microseconds and a '+00:00' offset, so comparing the
    strings lexically orders them chronologically.
    """
    return to_utc(value).isoformat(timespec="microseconds")

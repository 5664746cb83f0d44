"""
FILE: stabilizer/core/dates.py
PURPOSE: Timestamp and calendar-date helpers shared by the core and service layers
EXPORTS:
  - UTC
  - parse_timestamp(value) -> Optional[datetime]
  - ensure_utc(dt) -> datetime
  - utc_now() -> datetime
  - to_iso(dt) -> str
  - parse_day(value) -> date
  - format_day(d) -> str
  - days_between(later, earlier) -> float
DEPENDENCIES:
  - datetime (stdlib)
NOTES:
  - Task timestamps are ISO-8601 strings; date-only values mean midnight UTC
  - Naive datetimes are treated as UTC so comparisons never mix kinds
  - Habit dates are plain YYYY-MM-DD calendar days with no timezone
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

UTC = timezone.utc

SECONDS_PER_DAY = 86_400


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: Optional[Union[str, datetime, date]]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp or date into an aware UTC datetime.

    Returns None for empty or unparseable values; callers treat those the
    same as a missing field.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_utc(dt)


def to_iso(dt: datetime) -> str:
    """Serialize an aware datetime as an ISO-8601 UTC string."""
    return ensure_utc(dt).isoformat()


def days_between(later: datetime, earlier: datetime) -> float:
    """Calendar-time difference in (fractional) days; negative when overdue."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def parse_day(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD calendar day (a datetime is truncated to its date).

    A string may carry a full ISO-8601 time after the day; anything else
    raises ValueError.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    if len(text) > 10:
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def format_day(d: date) -> str:
    return d.isoformat()

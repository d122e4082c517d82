"""
Time utility functions for price windows and cache keys.
All calculations are done in UTC, the timezone both upstreams publish in.
"""

from datetime import date, datetime, timedelta
from typing import List, Tuple

import pytz


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def format_cache_instant(value: datetime) -> str:
    """
    Format an instant for use inside a cache key.

    Seconds and microseconds are only written when non-zero, so
    2023-01-01 00:00 UTC becomes '2023-01-01T00:00Z' while
    2023-01-01 23:59:59 UTC becomes '2023-01-01T23:59:59Z'.
    """
    value = to_utc(value)
    text = value.strftime("%Y-%m-%dT%H:%M")
    if value.second or value.microsecond:
        text += value.strftime(":%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}"
    return text + "Z"


def start_of_day(value: datetime) -> datetime:
    """Truncate an instant to 00:00 UTC of its day."""
    return to_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def current_price_window(reference_time: datetime = None) -> Tuple[datetime, datetime]:
    """
    Window used for direct price queries: yesterday 00:00 until tomorrow 23:59 UTC.

    Examples (reference 2023-01-02 13:37 UTC):
        - start -> 2023-01-01 00:00
        - end   -> 2023-01-03 23:59
    """
    today = start_of_day(reference_time or utc_now())
    start = today - timedelta(days=1)
    end = today + timedelta(days=2) - timedelta(minutes=1)
    return start, end


def day_window(day: date) -> Tuple[datetime, datetime]:
    """First and last second of a UTC calendar day."""
    start = pytz.UTC.localize(datetime.combine(day, datetime.min.time()))
    end = start + timedelta(days=1) - timedelta(seconds=1)
    return start, end


def trailing_dates(days: int, today: date) -> List[date]:
    """
    The `days` calendar dates ending at yesterday, oldest first.

    Today is excluded since its auction settlement may be incomplete.
    """
    end_date = today - timedelta(days=1)
    start_date = end_date - timedelta(days=days - 1)
    return [start_date + timedelta(days=offset) for offset in range(days)]


def format_duration(duration: timedelta) -> str:
    """Format an uptime as 'Xd Xh Xm Xs'."""
    total_seconds = int(duration.total_seconds())
    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"

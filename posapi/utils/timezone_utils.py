"""
Timezone utilities

Stored timestamps are UTC. Business rules that talk about "today" or
"this month" are evaluated in the store's local timezone (settings.TIMEZONE).
"""

from datetime import datetime, timezone
from typing import Optional

import pytz

from posapi.config import settings


def get_local_tz(tz_name: Optional[str] = None):
    """Return the pytz timezone for the store (default: settings.TIMEZONE)."""
    return pytz.timezone(tz_name or settings.TIMEZONE)


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_local(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert a UTC (or naive, assumed UTC) datetime to store local time."""
    return ensure_aware(dt).astimezone(get_local_tz(tz_name))


def is_same_month(
    first: Optional[datetime], second: datetime, tz_name: Optional[str] = None
) -> bool:
    """
    Whether two instants fall in the same calendar month and year, as seen
    from the store's local timezone.

    Returns False when ``first`` is None.
    """
    if first is None:
        return False
    a = to_local(first, tz_name)
    b = to_local(second, tz_name)
    return a.year == b.year and a.month == b.month

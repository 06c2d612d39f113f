"""
Date helpers shared by the reports.
Backend timestamps are timezone-aware UTC; expense dates are plain dates.
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Union[datetime, date]) -> datetime:
    """Normalize to an aware UTC datetime. Plain dates become midnight."""
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: Optional[datetime] = None) -> datetime:
    value = as_utc(value or utcnow())
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def in_window(value: Union[datetime, date], start: datetime, end: datetime) -> bool:
    """Half-open check: start <= value < end."""
    moment = as_utc(value)
    return start <= moment < end


def add_months(value: datetime, months: int) -> datetime:
    """First day of the month `months` away from value's month."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    return value.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)

"""
Calendar Service - Day bucketing and week boundaries.

Every aggregate in the application is keyed by UTC calendar day ("YYYY-MM-DD")
or by the Sunday that starts a week. Naive datetimes are taken to be UTC
already; aware ones are converted first.
"""

import datetime
from typing import Iterator, Optional, Tuple, Union

from taskledger.utils import utc_now, to_naive_utc

DateLike = Union[datetime.datetime, datetime.date]


def to_day(value: DateLike) -> datetime.date:
    """Calendar day (UTC) of a datetime; dates pass through."""
    if isinstance(value, datetime.datetime):
        return to_naive_utc(value).date()
    return value


def day_key(value: DateLike) -> str:
    """
    Normalize a timestamp to its "YYYY-MM-DD" day key.

    Two timestamps share a key iff they fall on the same UTC calendar day.
    """
    return to_day(value).isoformat()


def parse_day_key(key: str) -> datetime.date:
    return datetime.date.fromisoformat(key)


def start_of_week(value: DateLike) -> datetime.date:
    """
    Most recent Sunday at or before the given day.

    Weeks run Sunday (0) to Saturday (6); date.weekday() counts from Monday.
    """
    day = to_day(value)
    return day - datetime.timedelta(days=(day.weekday() + 1) % 7)


def end_of_week(value: DateLike) -> datetime.date:
    """Saturday closing the week that contains the given day"""
    return start_of_week(value) + datetime.timedelta(days=6)


def today(now: Optional[datetime.datetime] = None) -> datetime.date:
    """Current UTC calendar day"""
    return to_day(now if now is not None else utc_now())


def date_range(days: int, now: Optional[datetime.datetime] = None) -> Tuple[datetime.date, datetime.date]:
    """
    Window of `days` calendar days ending today, both ends inclusive.

    Args:
        days: Number of days in the window, today included
        now: Reference time (defaults to the current UTC time)

    Returns:
        (start_day, end_day)
    """
    if days < 1:
        raise ValueError(f"days must be at least 1, got {days}")
    end_day = today(now)
    return end_day - datetime.timedelta(days=days - 1), end_day


def iter_days(start_day: datetime.date, end_day: datetime.date) -> Iterator[datetime.date]:
    """Yield every day from start_day to end_day inclusive"""
    current = start_day
    while current <= end_day:
        yield current
        current += datetime.timedelta(days=1)


def iter_weeks(first_week_start: datetime.date, last_week_start: datetime.date) -> Iterator[datetime.date]:
    """Yield week starts from first to last inclusive, stepping 7 days"""
    current = first_week_start
    while current <= last_week_start:
        yield current
        current += datetime.timedelta(days=7)

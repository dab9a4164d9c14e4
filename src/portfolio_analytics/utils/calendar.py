"""
Calendar Helpers
================
Pure calendar-date arithmetic on datetime.date values.

All engine code works with datetime.date; day offsets only exist inside a
schedule and are converted back through add_days() at a single boundary.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd

DateLike = Union[date, datetime, str, pd.Timestamp, None]


def parse_date(value: DateLike) -> Optional[date]:
    """
    Normalize a date-like value to datetime.date.

    Accepts date, datetime, pandas Timestamp and ISO strings
    ("2025-03-01" or "2025-03-01T10:00:00Z"). Empty values return None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Unsupported date value: {value!r}")


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end."""
    return (end - start).days


def add_days(start: date, days: float) -> date:
    return start + timedelta(days=days)


def week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())


def intervals_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive overlap test: a shared boundary day counts as overlap."""
    return start_a <= end_b and end_a >= start_b


def inclusive_days(start: date, end: date) -> int:
    """Calendar days covered by [start, end], both ends included."""
    return days_between(start, end) + 1

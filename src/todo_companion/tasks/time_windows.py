# src/todo_companion/tasks/time_windows.py

"""
Date windows used by the listing and reminder queries.

All windows are naive datetimes in the server's local time zone; the store
converts them to epoch timestamps with `datetime.timestamp()`, which treats
naive values as local time.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_window(now: datetime, offset_days: int = 0) -> tuple[datetime, datetime]:
    """Half-open window [day 00:00, next day 00:00) for now.date() + offset_days."""
    start = start_of_day(now.date() + timedelta(days=offset_days))
    return start, start + timedelta(days=1)


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """Closed window [first day 00:00:00, last day 23:59:59] of now's month."""
    _, last_day = calendar.monthrange(now.year, now.month)
    first = datetime(now.year, now.month, 1)
    last = datetime(now.year, now.month, last_day, 23, 59, 59)
    return first, last

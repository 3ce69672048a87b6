# tests/test_time_windows.py

from __future__ import annotations

from datetime import datetime

from todo_companion.tasks.time_windows import day_window, month_window


def test_day_window_is_half_open_calendar_day() -> None:
    now = datetime(2026, 12, 31, 23, 59)

    assert day_window(now) == (datetime(2026, 12, 31), datetime(2027, 1, 1))
    assert day_window(now, 1) == (datetime(2027, 1, 1), datetime(2027, 1, 2))


def test_month_window_covers_leap_february() -> None:
    first, last = month_window(datetime(2024, 2, 10, 8, 0))

    assert first == datetime(2024, 2, 1, 0, 0, 0)
    assert last == datetime(2024, 2, 29, 23, 59, 59)

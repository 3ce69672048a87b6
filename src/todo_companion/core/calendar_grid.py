# src/todo_companion/core/calendar_grid.py

"""
Month calendar used as the due-date picker.

Layout (8 rows):
- header: "<Month> <Year>" (single cell)
- weekday labels, Sunday first
- 6 x 7 day cells; blanks before the 1st and after the last day
"""

from __future__ import annotations

import calendar
from datetime import date

from .payloads import Button, date_payload

WEEKDAY_LABELS = ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")
GRID_ROWS = 6
GRID_COLS = 7
BLANK = " "


def first_weekday(year: int, month: int) -> int:
    """Column of the 1st of the month, 0 = Sunday."""
    # calendar.weekday(): Monday = 0 ... Sunday = 6
    return (calendar.weekday(year, month, 1) + 1) % 7


def generate_calendar(reference: date) -> list[list[Button]]:
    year, month = reference.year, reference.month
    days_in_month = calendar.monthrange(year, month)[1]
    offset = first_weekday(year, month)

    rows: list[list[Button]] = [
        [Button(f"{calendar.month_name[month]} {year}")],
        [Button(label) for label in WEEKDAY_LABELS],
    ]

    for r in range(GRID_ROWS):
        row: list[Button] = []
        for c in range(GRID_COLS):
            day = r * GRID_COLS + c - offset + 1
            if 1 <= day <= days_in_month:
                row.append(Button(str(day), date_payload(date(year, month, day))))
            else:
                row.append(Button(BLANK))
        rows.append(row)

    return rows

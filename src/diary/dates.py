"""Calendar-date helpers.

Every date the diary stores is a plain ``datetime.date`` in the user's local
calendar.  ``normalize`` is the single place where instants become dates:
naive datetimes are taken as local wall-clock time, aware datetimes are
converted to the local zone first.

The month-grid helpers (``start_of_month``, ``end_of_month``,
``days_in_month``, ``first_weekday_offset``) exist for calendar views and are
not used by the tracker itself.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

# Python weekday numbering (Monday == 0); Sunday-first grids use 6
SUNDAY = 6


def normalize(value: date | datetime) -> date:
    """Return the local calendar date for a date or datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def today() -> date:
    return date.today()


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (normalize(end) - normalize(start)).days


def is_same_day(a: date | datetime, b: date | datetime) -> bool:
    return normalize(a) == normalize(b)


def add_days(value: date | datetime, days: int) -> date:
    return normalize(value) + timedelta(days=days)


def start_of_month(value: date | datetime) -> date:
    return normalize(value).replace(day=1)


def days_in_month(value: date | datetime) -> int:
    d = normalize(value)
    return calendar.monthrange(d.year, d.month)[1]


def end_of_month(value: date | datetime) -> date:
    d = normalize(value)
    return d.replace(day=days_in_month(d))


def first_weekday_offset(value: date | datetime, first_weekday: int = SUNDAY) -> int:
    """Number of blank leading cells before the 1st in a month grid.

    Args:
        value:         Any date in the month.
        first_weekday: Weekday the grid starts on (Monday == 0).

    Returns:
        Offset in the range 0..6.
    """
    if not 0 <= first_weekday <= 6:
        raise ValueError(f"first_weekday must be in 0..6, got {first_weekday}")
    return (start_of_month(value).weekday() - first_weekday) % 7

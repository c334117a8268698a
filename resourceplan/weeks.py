"""Week key helpers.

Every week-scoped record (labor requirements, assignments, timeline rows) is
partitioned by the Monday of its calendar week. All modules import these
functions so that joins across entities line up.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import List, Optional

import pandas as pd

from .errors import ValidationError


def to_date(value, field: str = "date") -> date:
    """Coerce a date, datetime, Timestamp or ISO string to a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            ts = pd.Timestamp(value.strip())
        except ValueError as exc:
            raise ValidationError(field, f"invalid date '{value}'") from exc
        # "nan" and "NaT" parse to NaT rather than failing
        if pd.isna(ts):
            raise ValidationError(field, f"invalid date '{value}'")
        return ts.date()
    raise ValidationError(field, f"invalid date {value!r}")


def week_start(value) -> date:
    """Get the Monday at or before the given date."""
    day = to_date(value, "week_start")
    # weekday(): Monday == 0 ... Sunday == 6, so Sunday goes back six days
    return day - timedelta(days=day.weekday())


def week_end(value) -> date:
    """Get the Sunday closing the week of the given date."""
    return week_start(value) + timedelta(days=6)


def weeks_between(start, end) -> List[date]:
    """List week keys from ``start``'s week through ``end``'s week inclusive."""
    current = week_start(start)
    last = week_start(end)
    weeks: List[date] = []
    while current <= last:
        weeks.append(current)
        current += timedelta(days=7)
    return weeks


def week_count(start, end) -> int:
    """Number of week keys between two dates, both ends included."""
    return len(weeks_between(start, end))


def current_week(today: Optional[date] = None) -> date:
    return week_start(today or date.today())


def add_weeks(week: date, count: int) -> date:
    return week_start(week) + timedelta(days=7 * count)

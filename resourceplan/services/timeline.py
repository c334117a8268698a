"""Rolling department capacity vs. assigned hours over consecutive weeks."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from resourceplan.config import LoadPolicy, TimelinePolicy
from resourceplan.domain.models import Assignment, Department, Employee
from resourceplan.weeks import add_weeks, current_week, week_start as to_week_start

from .aggregation import department_week_hours, employee_department_index
from .constraints import validate_week_count
from .utilization import load_level, utilization


@dataclass(frozen=True)
class TimelineEntry:
    department_id: int
    department_name: str
    week_index: int  # 1-based
    week_start: date
    capacity: float
    assigned_hours: float
    utilization_percentage: float
    load_level: str


def build_timeline(
    departments: Iterable[Department],
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    start_week: Optional[date] = None,
    week_count: int = 12,
    policy: Optional[TimelinePolicy] = None,
    load_policy: Optional[LoadPolicy] = None,
) -> List[TimelineEntry]:
    """
    Compute capacity and assigned hours per active department per week.

    Capacity counts active employees only. Assigned hours count every
    assignment held by the department's employees, whatever the project.
    Each week is computed on its own.

    Raises:
        ValidationError: week_count outside the allowed range
    """
    week_count = validate_week_count(week_count, policy)
    first = to_week_start(start_week) if start_week is not None else current_week()
    weeks = [add_weeks(first, offset) for offset in range(week_count)]

    employees = list(employees)
    active_employees = [emp for emp in employees if emp.is_active]
    capacity_by_dept: Dict[int, float] = defaultdict(float)
    for emp in active_employees:
        capacity_by_dept[emp.department_id] += emp.capacity

    window = set(weeks)
    hours = department_week_hours(
        (a for a in assignments if a.week_start in window),
        employee_department_index(employees),
    )

    entries: List[TimelineEntry] = []
    active_departments = sorted(
        (d for d in departments if d.active is not False), key=lambda d: (d.name, d.department_id)
    )
    for dept in active_departments:
        capacity = round(capacity_by_dept.get(dept.department_id, 0.0), 2)
        for index, week in enumerate(weeks, start=1):
            assigned = round(hours.get((dept.department_id, week), 0.0), 2)
            pct = utilization(assigned, capacity)
            entries.append(
                TimelineEntry(
                    department_id=dept.department_id,
                    department_name=dept.name,
                    week_index=index,
                    week_start=week,
                    capacity=capacity,
                    assigned_hours=assigned,
                    utilization_percentage=pct,
                    load_level=load_level(pct, load_policy),
                )
            )
    return entries


def timeline_matrix(entries: Iterable[TimelineEntry], digits: int = 1) -> pd.DataFrame:
    """
    Pivot timeline entries into a department x week utilization table.

    Returns:
        DataFrame indexed by department name with one column per week start
    """
    rows = [
        {
            "department": e.department_name,
            "week_start": e.week_start,
            "utilization": round(e.utilization_percentage, digits),
        }
        for e in entries
    ]
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    matrix = df.pivot(index="department", columns="week_start", values="utilization")
    matrix.columns = [pd.Timestamp(c).strftime("%Y-%m-%d") for c in matrix.columns]
    return matrix

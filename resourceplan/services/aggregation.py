"""In-memory join indexes over assignment snapshots.

Built once per query so that cross-entity sums never depend on lazy ORM
traversal.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Set, Tuple

from resourceplan.domain.models import Assignment, Employee


def employee_department_index(employees: Iterable[Employee]) -> Dict[int, int]:
    """employee_id -> department_id"""
    return {emp.employee_id: emp.department_id for emp in employees}


def employee_week_hours(assignments: Iterable[Assignment]) -> Dict[Tuple[int, date], float]:
    """(employee_id, week_start) -> hours summed across every project."""
    totals: Dict[Tuple[int, date], float] = defaultdict(float)
    for a in assignments:
        totals[(a.employee_id, a.week_start)] += float(a.assigned_hours or 0.0)
    return totals


def employee_week_projects(assignments: Iterable[Assignment]) -> Dict[Tuple[int, date], Set[int]]:
    """(employee_id, week_start) -> distinct project ids."""
    projects: Dict[Tuple[int, date], Set[int]] = defaultdict(set)
    for a in assignments:
        projects[(a.employee_id, a.week_start)].add(a.project_id)
    return projects


def project_department_week_hours(
    assignments: Iterable[Assignment],
    employee_department: Dict[int, int],
) -> Dict[Tuple[int, int, date], float]:
    """(project_id, department_id, week_start) -> hours of that department's employees."""
    totals: Dict[Tuple[int, int, date], float] = defaultdict(float)
    for a in assignments:
        department_id = employee_department.get(a.employee_id)
        if department_id is None:
            continue
        totals[(a.project_id, department_id, a.week_start)] += float(a.assigned_hours or 0.0)
    return totals


def department_week_hours(
    assignments: Iterable[Assignment],
    employee_department: Dict[int, int],
) -> Dict[Tuple[int, date], float]:
    """(department_id, week_start) -> hours across all projects."""
    totals: Dict[Tuple[int, date], float] = defaultdict(float)
    for a in assignments:
        department_id = employee_department.get(a.employee_id)
        if department_id is None:
            continue
        totals[(department_id, a.week_start)] += float(a.assigned_hours or 0.0)
    return totals


def project_week_employees(assignments: Iterable[Assignment]) -> Dict[Tuple[int, date], List[int]]:
    """(project_id, week_start) -> employees holding an assignment."""
    index: Dict[Tuple[int, date], List[int]] = defaultdict(list)
    for a in assignments:
        index[(a.project_id, a.week_start)].append(a.employee_id)
    return index

"""CSV export of projects, employees, assignments, conflicts and the timeline matrix."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from resourceplan.domain.models import Assignment, Department, Employee, Project
from resourceplan.services.conflicts import Conflict, ConflictType
from resourceplan.services.timeline import TimelineEntry, timeline_matrix

logger = logging.getLogger(__name__)

# Leading characters a spreadsheet would evaluate as a formula
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

PROJECT_COLUMNS = [
    "Project ID", "Project Name", "Description", "Start Date", "End Date", "Priority", "Status", "Departments",
]
EMPLOYEE_COLUMNS = [
    "Employee ID", "First Name", "Last Name", "Email", "Department", "Job Title", "Hours/Week", "Skills", "Active",
]
ASSIGNMENT_COLUMNS = [
    "Assignment ID", "Project", "Employee", "Department", "Week Start", "Assigned Hours", "Notes",
]
CONFLICT_COLUMNS = [
    "Employee", "Department", "Week Start", "Total Assigned Hours", "Capacity", "Over-allocation", "Projects",
]


def defang(value):
    """Prefix text cells that start like a formula with a single quote."""
    if isinstance(value, str) and value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def _defang_frame(df: pd.DataFrame) -> pd.DataFrame:
    for col in df.columns:
        df[col] = df[col].map(defang)
    return df


def _iso(value) -> str:
    return value.isoformat() if value is not None else ""


def projects_frame(
    projects: Iterable[Project],
    departments: Iterable[Department],
    project_id: Optional[int] = None,
) -> pd.DataFrame:
    """Active projects (optionally one) ordered by name."""
    dept_names = {d.department_id: d.name for d in departments}
    rows = []
    for p in sorted(projects, key=lambda p: p.name):
        if p.active is False or (project_id is not None and p.project_id != project_id):
            continue
        rows.append({
            "Project ID": p.project_id,
            "Project Name": p.name,
            "Description": p.description or "",
            "Start Date": _iso(p.start_date),
            "End Date": _iso(p.end_date),
            "Priority": p.priority,
            "Status": p.status,
            "Departments": "; ".join(sorted(dept_names.get(d, "") for d in p.department_ids)),
        })
    return _defang_frame(pd.DataFrame(rows, columns=PROJECT_COLUMNS))


def employees_frame(
    employees: Iterable[Employee],
    departments: Iterable[Department],
    department_id: Optional[int] = None,
) -> pd.DataFrame:
    """All employees (optionally one department) ordered by last then first name."""
    dept_names = {d.department_id: d.name for d in departments}
    rows = []
    for e in sorted(employees, key=lambda e: (e.last_name, e.first_name)):
        if department_id is not None and e.department_id != department_id:
            continue
        rows.append({
            "Employee ID": e.employee_id,
            "First Name": e.first_name,
            "Last Name": e.last_name,
            "Email": e.email or "",
            "Department": dept_names.get(e.department_id, ""),
            "Job Title": e.job_title or "",
            "Hours/Week": e.capacity,
            "Skills": ", ".join(e.skill_list),
            "Active": "Yes" if e.is_active else "No",
        })
    return _defang_frame(pd.DataFrame(rows, columns=EMPLOYEE_COLUMNS))


def assignments_frame(
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    projects: Iterable[Project],
    departments: Iterable[Department],
) -> pd.DataFrame:
    emp_lookup = {e.employee_id: e for e in employees}
    project_names = {p.project_id: p.name for p in projects}
    dept_names = {d.department_id: d.name for d in departments}

    rows = []
    for a in sorted(assignments, key=lambda a: (a.week_start, a.project_id, a.employee_id)):
        emp = emp_lookup.get(a.employee_id)
        rows.append({
            "Assignment ID": a.id,
            "Project": project_names.get(a.project_id, ""),
            "Employee": emp.full_name if emp else "",
            "Department": dept_names.get(emp.department_id, "") if emp else "",
            "Week Start": a.week_start.isoformat(),
            "Assigned Hours": float(a.assigned_hours),
            "Notes": a.note or "",
        })
    return _defang_frame(pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS))


def conflicts_frame(conflicts: Iterable[Conflict], employees: Iterable[Employee]) -> pd.DataFrame:
    """Overallocation conflicts only; understaffing rows have no employee capacity."""
    capacity = {e.employee_id: e.capacity for e in employees}
    rows = []
    for c in conflicts:
        if c.conflict_type != ConflictType.OVERALLOCATED_EMPLOYEE:
            continue
        cap = capacity.get(c.entity_id, 0.0)
        rows.append({
            "Employee": c.entity_name,
            "Department": c.department_name,
            "Week Start": c.week_start.isoformat(),
            "Total Assigned Hours": round(cap + c.variance, 2),
            "Capacity": cap,
            "Over-allocation": c.variance,
            "Projects": "; ".join(c.affected_projects),
        })
    return _defang_frame(pd.DataFrame(rows, columns=CONFLICT_COLUMNS))


def export_projects_csv(
    projects: Iterable[Project],
    departments: Iterable[Department],
    output_path: str | Path,
    project_id: Optional[int] = None,
) -> int:
    df = projects_frame(projects, departments, project_id)
    df.to_csv(output_path, index=False)
    logger.info("Exported %d projects to %s", len(df), output_path)
    return len(df)


def export_employees_csv(
    employees: Iterable[Employee],
    departments: Iterable[Department],
    output_path: str | Path,
    department_id: Optional[int] = None,
) -> int:
    df = employees_frame(employees, departments, department_id)
    df.to_csv(output_path, index=False)
    logger.info("Exported %d employees to %s", len(df), output_path)
    return len(df)


def export_assignments_csv(
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    projects: Iterable[Project],
    departments: Iterable[Department],
    output_path: str | Path,
) -> int:
    """
    Export assignments to CSV.

    Returns:
        Number of rows written
    """
    df = assignments_frame(assignments, employees, projects, departments)
    df.to_csv(output_path, index=False)
    logger.info("Exported %d assignments to %s", len(df), output_path)
    return len(df)


def export_conflicts_csv(conflicts: Iterable[Conflict], employees: Iterable[Employee], output_path: str | Path) -> int:
    df = conflicts_frame(conflicts, employees)
    df.to_csv(output_path, index=False)
    logger.info("Exported %d conflicts to %s", len(df), output_path)
    return len(df)


def export_timeline_csv(entries: List[TimelineEntry], output_path: str | Path) -> int:
    """Write the department x week utilization matrix; returns the department count."""
    matrix = timeline_matrix(entries)
    matrix.index = [defang(name) for name in matrix.index]
    matrix.to_csv(output_path, index=True, index_label="Department")
    logger.info("Exported timeline for %d departments to %s", len(matrix), output_path)
    return len(matrix)

"""CSV import utilities to load planning data into the database."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from resourceplan.config import HoursPolicy
from resourceplan.domain.models import Department, Employee, Project
from resourceplan.domain.repositories import ProjectRepository
from resourceplan.errors import ValidationError
from resourceplan.services.constraints import (
    validate_assignment_hours,
    validate_id,
    validate_priority,
    validate_requirement_hours,
    validate_status,
)
from resourceplan.services.ledger import AssignmentItem, AssignmentLedger
from resourceplan.services.requirements import LaborRequirementStore, RequirementItem
from resourceplan.services.skills import parse_skills
from resourceplan.weeks import week_start as to_week_start

logger = logging.getLogger(__name__)


def _read(csv_path: str | Path, required: List[str]) -> pd.DataFrame:
    df = pd.read_csv(csv_path)
    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValidationError(str(csv_path), f"missing columns: {', '.join(missing)}")
    return df


def _text(row, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _flag(row, column: str) -> bool:
    value = row.get(column)
    if value is None or pd.isna(value):
        return True
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "n")
    return bool(value)


def _id_list(raw) -> List[int]:
    if raw is None or pd.isna(raw):
        return []
    return [int(float(token)) for token in str(raw).replace(",", ";").split(";") if token.strip()]


def import_departments_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import departments from CSV.

    Columns: name, optional department_id, description, active

    Returns:
        Number of departments imported
    """
    df = _read(csv_path, ["name"])
    departments = []
    for _, row in df.iterrows():
        dept = Department(
            name=str(row["name"]).strip(),
            description=_text(row, "description"),
            active=_flag(row, "active"),
        )
        if "department_id" in df.columns and pd.notna(row["department_id"]):
            dept.department_id = int(row["department_id"])
        departments.append(dept)

    session.add_all(departments)
    session.commit()
    logger.info("Imported %d departments from %s", len(departments), csv_path)
    return len(departments)


def import_employees_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import employees from CSV.

    Columns: employee_id, first_name, last_name, department_id, optional
    email, job_title, capacity_hours_per_week (default 40), skills (comma
    separated, quoted) and active.

    Returns:
        Number of employees imported
    """
    df = _read(csv_path, ["employee_id", "first_name", "last_name", "department_id"])
    employees = []
    for _, row in df.iterrows():
        capacity = row.get("capacity_hours_per_week")
        emp = Employee(
            employee_id=int(row["employee_id"]),
            first_name=str(row["first_name"]).strip(),
            last_name=str(row["last_name"]).strip(),
            email=_text(row, "email"),
            job_title=_text(row, "job_title"),
            department_id=int(row["department_id"]),
            capacity_hours_per_week=float(capacity) if capacity is not None and pd.notna(capacity) else 40.0,
            skills=parse_skills(_text(row, "skills")),
            active=_flag(row, "active"),
        )
        employees.append(emp)

    session.add_all(employees)
    session.commit()
    logger.info("Imported %d employees from %s", len(employees), csv_path)
    return len(employees)


def import_projects_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import projects from CSV.

    Columns: project_id, name, optional description, priority, status,
    start_date, end_date and department_ids (semicolon separated).

    Returns:
        Number of projects imported
    """
    df = _read(csv_path, ["project_id", "name"])
    for col in ("start_date", "end_date"):
        if col in df.columns:
            df[col] = pd.to_datetime(df[col]).dt.date

    count = 0
    for _, row in df.iterrows():
        start = row.get("start_date")
        end = row.get("end_date")
        project = Project(
            project_id=int(row["project_id"]),
            name=str(row["name"]).strip(),
            description=_text(row, "description"),
            priority=validate_priority(_text(row, "priority") or "Medium"),
            status=validate_status(_text(row, "status") or "Active"),
            start_date=start if start is not None and pd.notna(start) else None,
            end_date=end if end is not None and pd.notna(end) else None,
            active=_flag(row, "active"),
        )
        session.add(project)
        session.flush()
        ProjectRepository.link_departments(session, project.project_id, _id_list(row.get("department_ids")))
        count += 1

    session.commit()
    logger.info("Imported %d projects from %s", count, csv_path)
    return count


def import_requirements_csv(session: Session, csv_path: str | Path, policy: Optional[HoursPolicy] = None) -> int:
    """
    Upsert labor requirements from CSV, one bulk save per project.

    Columns: project_id, department_id, week_start, required_hours

    Every row's ids, week and hours are validated before the first batch is
    saved, so a malformed file stores nothing. A batch that later fails on a
    missing project or department leaves the batches before it saved.

    Returns:
        Number of rows created or updated
    """
    df = _read(csv_path, ["project_id", "department_id", "week_start", "required_hours"])
    store = LaborRequirementStore(session, policy)
    batches: Dict[int, List[RequirementItem]] = {}
    for _, row in df.iterrows():
        project_id = validate_id(row["project_id"], "project_id")
        batches.setdefault(project_id, []).append(
            RequirementItem(
                validate_id(row["department_id"], "department_id"),
                to_week_start(str(row["week_start"])),
                validate_requirement_hours(row["required_hours"], policy),
            )
        )

    total = 0
    for project_id, items in sorted(batches.items()):
        total += store.bulk_save(project_id, items).total
    logger.info("Imported %d labor requirements from %s", total, csv_path)
    return total


def import_assignments_csv(session: Session, csv_path: str | Path, policy: Optional[HoursPolicy] = None) -> int:
    """
    Upsert assignments from CSV, one bulk upsert per (project, week).

    Columns: project_id, employee_id, week_start, assigned_hours, optional note

    Every row's ids, week and hours are validated before the first batch is
    saved, so a malformed file stores nothing. A batch that later fails on a
    missing project or employee leaves the batches before it saved.

    Returns:
        Number of rows created or updated
    """
    df = _read(csv_path, ["project_id", "employee_id", "week_start", "assigned_hours"])
    ledger = AssignmentLedger(session, policy)
    batches: Dict = {}
    for _, row in df.iterrows():
        key = (validate_id(row["project_id"], "project_id"), to_week_start(str(row["week_start"])))
        batches.setdefault(key, []).append(
            AssignmentItem(
                validate_id(row["employee_id"], "employee_id"),
                validate_assignment_hours(row["assigned_hours"], policy),
                _text(row, "note"),
            )
        )

    total = 0
    for (project_id, week), items in sorted(batches.items()):
        total += ledger.bulk_upsert(project_id, week, items).total
    logger.info("Imported %d assignments from %s", total, csv_path)
    return total

"""Weekly labor requirements: storage accessor and staffing view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resourceplan.config import HoursPolicy, StaffingPolicy
from resourceplan.domain.models import Assignment, Department, Employee, LaborRequirement, utcnow
from resourceplan.domain.repositories import (
    AssignmentRepository,
    DepartmentRepository,
    EmployeeRepository,
    LaborRequirementRepository,
    ProjectRepository,
)
from resourceplan.errors import ConcurrentWriteConflict, NotFound
from resourceplan.weeks import week_start as to_week_start

from .aggregation import employee_department_index, project_department_week_hours
from .constraints import validate_id, validate_requirement_hours
from .ledger import BulkResult
from .utilization import staffing_percentage, staffing_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequirementItem:
    department_id: int
    week_start: date
    hours: float


@dataclass(frozen=True)
class LaborRequirementView:
    requirement_id: Optional[int]
    project_id: int
    department_id: int
    department_name: str
    week_start: date
    required_hours: float
    assigned_hours: float
    remaining_hours: float
    staffing_percentage: float
    staffing_status: str


def _coerce_item(item: Union[RequirementItem, Mapping, Tuple]) -> RequirementItem:
    if isinstance(item, RequirementItem):
        return item
    if isinstance(item, Mapping):
        hours = item.get("hours", item.get("required_hours"))
        return RequirementItem(item["department_id"], item["week_start"], hours)
    department_id, week, hours = item
    return RequirementItem(department_id, week, hours)


def build_staffing_views(
    requirements: Iterable[LaborRequirement],
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    departments: Iterable[Department] = (),
    policy: Optional[StaffingPolicy] = None,
) -> List[LaborRequirementView]:
    """
    Join requirement rows with the hours their department has been assigned.

    Assigned hours for a requirement only count employees belonging to the
    requirement's department.
    """
    names = {d.department_id: d.name for d in departments}
    hours = project_department_week_hours(assignments, employee_department_index(employees))
    views: List[LaborRequirementView] = []
    for req in requirements:
        required = float(req.required_hours or 0.0)
        assigned = round(hours.get((req.project_id, req.department_id, req.week_start), 0.0), 2)
        pct = staffing_percentage(assigned, required)
        views.append(
            LaborRequirementView(
                requirement_id=req.id,
                project_id=req.project_id,
                department_id=req.department_id,
                department_name=names.get(req.department_id, ""),
                week_start=req.week_start,
                required_hours=required,
                assigned_hours=assigned,
                remaining_hours=round(required - assigned, 2),
                staffing_percentage=pct,
                staffing_status=staffing_status(pct, policy),
            )
        )
    return views


class LaborRequirementStore:
    """Read and upsert weekly (project, department) hour targets."""

    def __init__(
        self,
        session: Session,
        policy: Optional[HoursPolicy] = None,
        staffing: Optional[StaffingPolicy] = None,
    ):
        self.session = session
        self.policy = policy or HoursPolicy()
        self.staffing = staffing

    def get(self, project_id: int, week_start=None) -> List[LaborRequirementView]:
        """Requirements of a project (optionally one week) with staffing figures."""
        week = to_week_start(week_start) if week_start is not None else None
        requirements = LaborRequirementRepository.get_by_project(self.session, project_id, week)
        assignments = AssignmentRepository.get_by_project(self.session, project_id, week)
        employees = EmployeeRepository.get_by_ids(self.session, (a.employee_id for a in assignments))
        departments = DepartmentRepository.get_all(self.session)
        return build_staffing_views(requirements, assignments, employees, departments, self.staffing)

    def _upsert(self, project_id: int, department_id: int, week: date, hours: float) -> Tuple[LaborRequirement, bool]:
        existing = LaborRequirementRepository.get_by_key(self.session, project_id, department_id, week)
        if existing is not None:
            existing.required_hours = hours
            existing.modified_at = utcnow()
            return existing, False
        requirement = LaborRequirement(
            project_id=project_id,
            department_id=department_id,
            week_start=week,
            required_hours=hours,
        )
        self.session.add(requirement)
        return requirement, True

    def _check_refs(self, project_id: int, department_ids: Iterable[int]) -> None:
        if ProjectRepository.get_by_id(self.session, project_id) is None:
            raise NotFound("Project", project_id)
        for department_id in sorted(set(department_ids)):
            if DepartmentRepository.get_by_id(self.session, department_id) is None:
                raise NotFound("Department", department_id)

    def _commit(self, key: tuple) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConcurrentWriteConflict("LaborRequirement", key) from exc

    def save(self, project_id: int, department_id: int, week_start, hours: float) -> LaborRequirement:
        """Insert or update the requirement for one (project, department, week)."""
        project_id = validate_id(project_id, "project_id")
        department_id = validate_id(department_id, "department_id")
        week = to_week_start(week_start)
        hours = validate_requirement_hours(hours, self.policy)
        self._check_refs(project_id, [department_id])

        requirement, created = self._upsert(project_id, department_id, week, hours)
        try:
            self.session.commit()
        except IntegrityError:
            # another writer inserted the key first; apply ours as an update
            self.session.rollback()
            requirement, created = self._upsert(project_id, department_id, week, hours)
            self._commit((project_id, department_id, week))
        logger.info(
            "%s requirement: project=%s dept=%s week=%s hours=%.2f",
            "Created" if created else "Updated", project_id, department_id, week, hours,
        )
        return requirement

    def bulk_save(self, project_id: int, items: Sequence) -> BulkResult:
        """
        Upsert many requirements for one project in a single commit.

        Every item is validated first; an invalid item leaves the store
        unchanged.
        """
        project_id = validate_id(project_id, "project_id")
        rows: List[RequirementItem] = []
        for raw in items:
            item = _coerce_item(raw)
            rows.append(
                RequirementItem(
                    validate_id(item.department_id, "department_id"),
                    to_week_start(item.week_start),
                    validate_requirement_hours(item.hours, self.policy),
                )
            )
        self._check_refs(project_id, (row.department_id for row in rows))

        created = updated = 0
        for row in rows:
            _, was_created = self._upsert(project_id, row.department_id, row.week_start, row.hours)
            if was_created:
                created += 1
                # flush so a repeated key later in the batch is found as an update
                try:
                    self.session.flush()
                except IntegrityError as exc:
                    self.session.rollback()
                    raise ConcurrentWriteConflict(
                        "LaborRequirement", (project_id, row.department_id, row.week_start)
                    ) from exc
            else:
                updated += 1
        self._commit((project_id,))
        logger.info("Bulk requirement save for project %s: %d created, %d updated", project_id, created, updated)
        return BulkResult(created=created, updated=updated)

    def delete(self, requirement_id: int) -> bool:
        requirement = self.session.get(LaborRequirement, requirement_id)
        if requirement is None:
            return False
        self.session.delete(requirement)
        self.session.commit()
        logger.info("Deleted requirement %s", requirement_id)
        return True

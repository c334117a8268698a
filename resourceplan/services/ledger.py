"""Assignment ledger: one assignment per (project, employee, week).

Uniqueness is enforced twice: a lookup before insert gives a clean
``DuplicateAssignment``, and the ``uq_assignment_key`` constraint catches the
check-then-insert race, which is translated into the same error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resourceplan.config import HoursPolicy
from resourceplan.domain.models import Assignment, utcnow
from resourceplan.domain.repositories import AssignmentRepository, EmployeeRepository, ProjectRepository
from resourceplan.errors import DuplicateAssignment, NotFound
from resourceplan.weeks import week_start as to_week_start

from .constraints import validate_assignment_hours, validate_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentItem:
    """One row of a bulk assignment panel."""

    employee_id: int
    hours: float
    note: Optional[str] = None


@dataclass(frozen=True)
class BulkResult:
    created: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated


ItemLike = Union[AssignmentItem, Mapping, Tuple]


def _coerce_item(item: ItemLike) -> AssignmentItem:
    if isinstance(item, AssignmentItem):
        return item
    if isinstance(item, Mapping):
        hours = item.get("hours", item.get("assigned_hours"))
        return AssignmentItem(item["employee_id"], hours, item.get("note"))
    employee_id, hours, *rest = item
    return AssignmentItem(employee_id, hours, rest[0] if rest else None)


class AssignmentLedger:
    """Create, update, delete and list assignments against a session."""

    def __init__(self, session: Session, policy: Optional[HoursPolicy] = None):
        self.session = session
        self.policy = policy or HoursPolicy()

    def _require_project(self, project_id: int) -> None:
        if ProjectRepository.get_by_id(self.session, project_id) is None:
            raise NotFound("Project", project_id)

    def _require_employees(self, employee_ids: Iterable[int]) -> None:
        wanted = set(employee_ids)
        found = {emp.employee_id for emp in EmployeeRepository.get_by_ids(self.session, wanted)}
        missing = sorted(wanted - found)
        if missing:
            raise NotFound("Employee", missing[0])

    def create(
        self,
        project_id: int,
        employee_id: int,
        week_start,
        hours: float,
        note: Optional[str] = None,
    ) -> Assignment:
        """
        Insert a new assignment.

        Raises:
            ValidationError: hours outside [0, 168] or malformed ids/dates
            NotFound: unknown project or employee
            DuplicateAssignment: the (project, employee, week) key is taken
        """
        project_id = validate_id(project_id, "project_id")
        employee_id = validate_id(employee_id, "employee_id")
        week = to_week_start(week_start)
        hours = validate_assignment_hours(hours, self.policy)
        self._require_project(project_id)
        self._require_employees([employee_id])

        existing = AssignmentRepository.get_by_key(self.session, project_id, employee_id, week)
        if existing is not None:
            raise DuplicateAssignment(project_id, employee_id, week, existing.id)

        assignment = Assignment(
            project_id=project_id,
            employee_id=employee_id,
            week_start=week,
            assigned_hours=hours,
            note=note,
        )
        self.session.add(assignment)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raced = AssignmentRepository.get_by_key(self.session, project_id, employee_id, week)
            raise DuplicateAssignment(
                project_id, employee_id, week, raced.id if raced else None
            ) from exc
        self.session.refresh(assignment)
        logger.info(
            "Created assignment %s: project=%s employee=%s week=%s hours=%.2f",
            assignment.id, project_id, employee_id, week, hours,
        )
        return assignment

    def update(self, assignment_id: int, hours: float, note: Optional[str] = None) -> Assignment:
        """Change hours and note of an existing assignment. The key never changes."""
        assignment_id = validate_id(assignment_id, "assignment_id")
        hours = validate_assignment_hours(hours, self.policy)
        assignment = AssignmentRepository.get_by_id(self.session, assignment_id)
        if assignment is None:
            raise NotFound("Assignment", assignment_id)

        assignment.assigned_hours = hours
        assignment.note = note
        assignment.modified_at = utcnow()
        self.session.commit()
        logger.info("Updated assignment %s: hours=%.2f", assignment_id, hours)
        return assignment

    def delete(self, assignment_id: int) -> bool:
        """Remove an assignment. Returns False when it does not exist."""
        assignment = AssignmentRepository.get_by_id(self.session, assignment_id)
        if assignment is None:
            return False
        self.session.delete(assignment)
        self.session.commit()
        logger.info("Deleted assignment %s", assignment_id)
        return True

    def bulk_upsert(self, project_id: int, week_start, items: Sequence[ItemLike]) -> BulkResult:
        """
        Insert or update one assignment per item for a single project and week.

        Args:
            project_id: Project shared by every item
            week_start: Any date in the target week
            items: AssignmentItem, mapping or (employee_id, hours[, note]) tuples

        Returns:
            BulkResult with the number of created and updated rows

        All items are validated before any row is touched, and the batch is
        committed once, so a failing item leaves the ledger unchanged.
        """
        project_id = validate_id(project_id, "project_id")
        week = to_week_start(week_start)
        rows: List[AssignmentItem] = []
        for raw in items:
            item = _coerce_item(raw)
            rows.append(
                AssignmentItem(
                    validate_id(item.employee_id, "employee_id"),
                    validate_assignment_hours(item.hours, self.policy),
                    item.note,
                )
            )
        self._require_project(project_id)
        self._require_employees(item.employee_id for item in rows)

        created = updated = 0
        for item in rows:
            existing = AssignmentRepository.get_by_key(self.session, project_id, item.employee_id, week)
            if existing is not None:
                existing.assigned_hours = item.hours
                existing.note = item.note
                existing.modified_at = utcnow()
                updated += 1
                continue
            self.session.add(
                Assignment(
                    project_id=project_id,
                    employee_id=item.employee_id,
                    week_start=week,
                    assigned_hours=item.hours,
                    note=item.note,
                )
            )
            try:
                self.session.flush()
            except IntegrityError as exc:
                self.session.rollback()
                raise DuplicateAssignment(project_id, item.employee_id, week) from exc
            created += 1

        self.session.commit()
        logger.info(
            "Bulk upsert for project %s week %s: %d created, %d updated",
            project_id, week, created, updated,
        )
        return BulkResult(created=created, updated=updated)

    def list_by_project(self, project_id: int, week_start=None) -> List[Assignment]:
        week: Optional[date] = to_week_start(week_start) if week_start is not None else None
        return AssignmentRepository.get_by_project(self.session, project_id, week)

    def list_by_employee(self, employee_id: int, week_start=None) -> List[Assignment]:
        week: Optional[date] = to_week_start(week_start) if week_start is not None else None
        return AssignmentRepository.get_by_employee(self.session, employee_id, week)

"""Planner facade - one entry point over the ledger, requirement store and read models."""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from resourceplan.config import PlanningConfig
from resourceplan.domain.models import Assignment, LaborRequirement, Project, ProjectTemplate
from resourceplan.domain.repositories import (
    AssignmentRepository,
    DepartmentRepository,
    EmployeeRepository,
    LaborRequirementRepository,
    ProjectRepository,
)
from resourceplan.errors import NotFound
from resourceplan.services import reporting
from resourceplan.services.conflicts import Conflict, ConflictDetector
from resourceplan.services.constraints import validate_id, validate_week_count
from resourceplan.services.ledger import AssignmentLedger, BulkResult
from resourceplan.services.requirements import LaborRequirementStore, LaborRequirementView
from resourceplan.services.skills import SkillMatch, SkillMatchRequest, all_skills, find_skill_matches, project_skills
from resourceplan.services.templates import TemplateService
from resourceplan.services.timeline import TimelineEntry, build_timeline
from resourceplan.weeks import add_weeks, current_week, week_start as to_week_start

logger = logging.getLogger(__name__)


class ResourcePlanner:
    """
    Facade used by the CLI and any request handler.

    Writes go through the assignment ledger and requirement store; reads load a
    snapshot from the session and hand it to the pure calculators.
    """

    def __init__(self, session: Session, cfg: Optional[PlanningConfig] = None):
        """
        Args:
            session: Database session, owned by the caller
            cfg: PlanningConfig (defaults when omitted)
        """
        self.session = session
        self.cfg = cfg or PlanningConfig()
        self.ledger = AssignmentLedger(session, self.cfg.hours)
        self.requirements = LaborRequirementStore(session, self.cfg.hours, self.cfg.staffing)
        self.templates = TemplateService(session, self.cfg.hours)
        self.detector = ConflictDetector(self.cfg)

    # Labor requirements

    def get_labor_requirements(self, project_id: int, week_start=None) -> List[LaborRequirementView]:
        return self.requirements.get(project_id, week_start)

    def save_labor_requirement(self, project_id: int, department_id: int, week_start, hours: float) -> LaborRequirement:
        return self.requirements.save(project_id, department_id, week_start, hours)

    def bulk_save_labor_requirements(self, project_id: int, items: Sequence) -> BulkResult:
        return self.requirements.bulk_save(project_id, items)

    def delete_labor_requirement(self, requirement_id: int) -> bool:
        return self.requirements.delete(requirement_id)

    # Assignments

    def create_assignment(
        self, project_id: int, employee_id: int, week_start, hours: float, note: Optional[str] = None
    ) -> Assignment:
        return self.ledger.create(project_id, employee_id, week_start, hours, note)

    def update_assignment(self, assignment_id: int, hours: float, note: Optional[str] = None) -> Assignment:
        return self.ledger.update(assignment_id, hours, note)

    def delete_assignment(self, assignment_id: int) -> bool:
        return self.ledger.delete(assignment_id)

    def bulk_create_assignments(self, project_id: int, week_start, items: Sequence) -> int:
        """Upsert a panel of assignments; returns the number of newly created rows."""
        return self.ledger.bulk_upsert(project_id, week_start, items).created

    def bulk_upsert_assignments(self, project_id: int, week_start, items: Sequence) -> BulkResult:
        return self.ledger.bulk_upsert(project_id, week_start, items)

    def get_assignments(self, project_id: int, week_start=None) -> List[Assignment]:
        return self.ledger.list_by_project(project_id, week_start)

    def get_employee_assignments(self, employee_id: int, week_start=None) -> List[Assignment]:
        return self.ledger.list_by_employee(employee_id, week_start)

    # Conflicts

    def get_conflicts(self, today: Optional[date] = None, start_week=None, end_week=None) -> List[Conflict]:
        """
        Detect overallocations and understaffing over the whole store.

        Args:
            today: Reference date for "current week" (defaults to today)
            start_week: Optional first week for overallocation checks
            end_week: Optional last week for overallocation checks

        Returns:
            Conflicts ranked High first, then by variance
        """
        weeks = None
        if start_week is not None or end_week is not None:
            weeks = (
                to_week_start(start_week) if start_week is not None else None,
                to_week_start(end_week) if end_week is not None else None,
            )
        conflicts = self.detector.detect(
            EmployeeRepository.get_all(self.session),
            ProjectRepository.get_all(self.session),
            DepartmentRepository.get_all(self.session),
            LaborRequirementRepository.get_from_week(self.session, current_week(today)),
            AssignmentRepository.get_all(self.session),
            today=today,
            weeks=weeks,
        )
        logger.info("Found %d conflicts", len(conflicts))
        return conflicts

    # Availability and skills

    def get_available_employees(
        self, department_id: int, week_start, min_available_hours: float = 0.0
    ) -> List[reporting.EmployeeAvailability]:
        department_id = validate_id(department_id, "department_id")
        week = to_week_start(week_start)
        return reporting.available_employees(
            EmployeeRepository.get_active(self.session, department_id),
            AssignmentRepository.get_by_week(self.session, week),
            department_id,
            week,
            min_available_hours,
        )

    def find_skill_matches(self, request: SkillMatchRequest) -> List[SkillMatch]:
        request = request.normalized()
        if ProjectRepository.get_by_id(self.session, request.project_id) is None:
            raise NotFound("Project", request.project_id)
        return find_skill_matches(
            request,
            EmployeeRepository.get_active(self.session, request.department_id),
            AssignmentRepository.get_by_week(self.session, request.week_start),
            DepartmentRepository.get_all(self.session),
        )

    def get_all_skills(self) -> List[str]:
        return all_skills(EmployeeRepository.get_active(self.session))

    def get_project_skills(self, project_id: int) -> List[str]:
        project = self._require_project(project_id)
        return project_skills(project, EmployeeRepository.get_active(self.session))

    # Timeline and dashboards

    def get_resource_timeline(self, start_week=None, week_count: Optional[int] = None) -> List[TimelineEntry]:
        """Department load for ``week_count`` weeks from ``start_week`` (current week by default)."""
        if week_count is None:
            week_count = self.cfg.timeline.default_weeks
        week_count = validate_week_count(week_count, self.cfg.timeline)
        first = to_week_start(start_week) if start_week is not None else current_week()
        last = add_weeks(first, week_count - 1)
        return build_timeline(
            DepartmentRepository.get_all(self.session, active_only=True),
            EmployeeRepository.get_all(self.session),
            AssignmentRepository.get_in_range(self.session, first, last),
            start_week=first,
            week_count=week_count,
            policy=self.cfg.timeline,
            load_policy=self.cfg.load,
        )

    def get_calendar_events(
        self, start, end, department_id: Optional[int] = None, employee_id: Optional[int] = None
    ) -> List[reporting.CalendarEvent]:
        first = to_week_start(start)
        last = to_week_start(end)
        return reporting.calendar_events(
            AssignmentRepository.get_in_range(self.session, first, last),
            EmployeeRepository.get_all(self.session),
            ProjectRepository.get_all(self.session),
            DepartmentRepository.get_all(self.session),
            first,
            last,
            department_id=department_id,
            employee_id=employee_id,
        )

    def get_quick_stats(self, today: Optional[date] = None) -> reporting.QuickStats:
        return reporting.quick_stats(
            EmployeeRepository.get_all(self.session),
            ProjectRepository.get_active(self.session),
            LaborRequirementRepository.get_from_week(self.session, current_week(today)),
            AssignmentRepository.get_all(self.session),
            today=today,
            cfg=self.cfg,
        )

    def get_report_data(self, start_week=None, week_count: int = 12) -> reporting.ReportData:
        first = to_week_start(start_week) if start_week is not None else current_week()
        return reporting.report_data(
            DepartmentRepository.get_all(self.session),
            EmployeeRepository.get_all(self.session),
            ProjectRepository.get_all(self.session),
            AssignmentRepository.get_all(self.session),
            start_week=first,
            week_count=week_count,
        )

    def get_project_staffing_status(self, project_id: Optional[int] = None) -> List[reporting.ProjectStaffingStatus]:
        if project_id is not None:
            projects = [self._require_project(project_id)]
            requirements = LaborRequirementRepository.get_by_project(self.session, project_id)
            assignments = AssignmentRepository.get_by_project(self.session, project_id)
        else:
            projects = ProjectRepository.get_active(self.session)
            requirements = LaborRequirementRepository.get_all(self.session)
            assignments = AssignmentRepository.get_all(self.session)
        return reporting.project_staffing_status(
            projects,
            requirements,
            assignments,
            EmployeeRepository.get_all(self.session),
            DepartmentRepository.get_all(self.session),
            self.cfg,
        )

    # Templates

    def list_templates(self) -> List[ProjectTemplate]:
        return self.templates.list_active()

    def get_template(self, template_id: int) -> ProjectTemplate:
        return self.templates.get(template_id)

    def create_template(self, name: str, department_ids, default_hours=(), duration_weeks: int = 12,
                        priority: str = "Medium", description: Optional[str] = None) -> ProjectTemplate:
        return self.templates.create(name, department_ids, default_hours, duration_weeks, priority, description)

    def delete_template(self, template_id: int) -> bool:
        return self.templates.delete(template_id)

    def create_template_from_project(self, project_id: int, name: str,
                                     description: Optional[str] = None) -> ProjectTemplate:
        return self.templates.create_from_project(project_id, name, description)

    def create_project_from_template(self, template_id: int, name: str, start_date,
                                     description: Optional[str] = None) -> Project:
        return self.templates.create_project(template_id, name, start_date, description)

    def _require_project(self, project_id: int) -> Project:
        project = ProjectRepository.get_by_id(self.session, project_id)
        if project is None:
            raise NotFound("Project", project_id)
        return project

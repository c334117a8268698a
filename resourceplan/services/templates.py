"""Reusable project templates: department list plus per-week default hours."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from resourceplan.config import HoursPolicy
from resourceplan.domain.models import LaborRequirement, Project, ProjectTemplate
from resourceplan.domain.repositories import (
    DepartmentRepository,
    LaborRequirementRepository,
    ProjectRepository,
    TemplateRepository,
)
from resourceplan.errors import NotFound, ValidationError
from resourceplan.weeks import to_date, week_start as to_week_start

from .constraints import validate_id, validate_priority, validate_requirement_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateHours:
    department_id: int
    week_number: int  # 0-based offset from the project start
    hours: float

    def to_dict(self) -> Dict[str, object]:
        return {"department_id": self.department_id, "week_number": self.week_number, "hours": self.hours}


def _coerce_hours(raw, policy: HoursPolicy) -> TemplateHours:
    if isinstance(raw, TemplateHours):
        department_id, week_number, hours = raw.department_id, raw.week_number, raw.hours
    elif isinstance(raw, Mapping):
        department_id = raw["department_id"]
        week_number = raw["week_number"]
        hours = raw.get("hours", raw.get("required_hours"))
    else:
        department_id, week_number, hours = raw
    if isinstance(week_number, bool) or not isinstance(week_number, int) or week_number < 0:
        raise ValidationError("week_number", f"must be a non-negative integer, got {week_number!r}")
    return TemplateHours(
        validate_id(department_id, "department_id"),
        week_number,
        validate_requirement_hours(hours, policy),
    )


class TemplateService:
    """CRUD for templates and conversion between templates and projects."""

    def __init__(self, session: Session, policy: Optional[HoursPolicy] = None):
        self.session = session
        self.policy = policy or HoursPolicy()

    def list_active(self) -> List[ProjectTemplate]:
        return TemplateRepository.get_active(self.session)

    def get(self, template_id: int) -> ProjectTemplate:
        template = TemplateRepository.get_by_id(self.session, template_id)
        if template is None:
            raise NotFound("ProjectTemplate", template_id)
        return template

    def create(
        self,
        name: str,
        department_ids: Iterable[int],
        default_hours: Iterable = (),
        duration_weeks: int = 12,
        priority: str = "Medium",
        description: Optional[str] = None,
    ) -> ProjectTemplate:
        """
        Store a new template.

        Raises:
            ValidationError: blank name, bad duration, priority or hours rows
            NotFound: unknown department id
        """
        if not name or not str(name).strip():
            raise ValidationError("name", "must not be empty")
        if isinstance(duration_weeks, bool) or not isinstance(duration_weeks, int) or duration_weeks < 1:
            raise ValidationError("duration_weeks", "must be a positive integer")
        departments = list(dict.fromkeys(validate_id(d, "department_id") for d in department_ids))
        rows = [_coerce_hours(raw, self.policy) for raw in default_hours]
        for department_id in sorted(set(departments) | {r.department_id for r in rows}):
            if DepartmentRepository.get_by_id(self.session, department_id) is None:
                raise NotFound("Department", department_id)

        template = ProjectTemplate(
            name=str(name).strip(),
            description=description,
            priority=validate_priority(priority),
            duration_weeks=duration_weeks,
            department_ids=departments,
            default_hours=[r.to_dict() for r in rows],
            active=True,
        )
        template = TemplateRepository.create(self.session, template)
        logger.info("Created template %s '%s'", template.template_id, template.name)
        return template

    def delete(self, template_id: int) -> bool:
        """Deactivate a template. Returns False when it does not exist."""
        template = TemplateRepository.get_by_id(self.session, template_id)
        if template is None:
            return False
        template.active = False
        self.session.commit()
        logger.info("Deactivated template %s", template_id)
        return True

    def create_from_project(self, project_id: int, name: str, description: Optional[str] = None) -> ProjectTemplate:
        """
        Capture a project's departments and requirement hours as a template.

        Week numbers are counted from the week of the project's start date;
        requirements before it are skipped.
        """
        project = ProjectRepository.get_by_id(self.session, project_id)
        if project is None:
            raise NotFound("Project", project_id)

        requirements = LaborRequirementRepository.get_by_project(self.session, project_id)
        origin = to_week_start(project.start_date) if project.start_date else None
        if origin is None and requirements:
            origin = min(r.week_start for r in requirements)

        rows: List[TemplateHours] = []
        for req in requirements:
            week_number = (req.week_start - origin).days // 7
            if week_number < 0:
                continue
            rows.append(TemplateHours(req.department_id, week_number, float(req.required_hours)))

        if rows:
            duration = max(r.week_number for r in rows) + 1
        elif project.start_date and project.end_date:
            duration = max(1, math.ceil((project.end_date - project.start_date).days / 7))
        else:
            duration = 12

        return self.create(
            name=name,
            department_ids=project.department_ids or sorted({r.department_id for r in rows}),
            default_hours=rows,
            duration_weeks=duration,
            priority=project.priority or "Medium",
            description=description if description is not None else project.description,
        )

    def create_project(self, template_id: int, name: str, start_date, description: Optional[str] = None) -> Project:
        """
        Instantiate a Planning project from a template.

        The end date is ``start + duration_weeks * 7`` days; each default hours
        row becomes a requirement in the Monday-aligned week ``week_number``
        weeks after the start.
        """
        template = self.get(template_id)
        if not name or not str(name).strip():
            raise ValidationError("name", "must not be empty")
        start: date = to_date(start_date, "start_date")

        project = Project(
            name=str(name).strip(),
            description=description if description is not None else template.description,
            priority=template.priority,
            status="Planning",
            start_date=start,
            end_date=start + timedelta(days=template.duration_weeks * 7),
            active=True,
        )
        self.session.add(project)
        self.session.flush()
        ProjectRepository.link_departments(self.session, project.project_id, template.department_ids or [])

        # a repeated (department, week) row overrides the earlier one
        hours_by_key: Dict = {}
        for raw in template.default_hours or []:
            row = _coerce_hours(raw, self.policy)
            week = to_week_start(start + timedelta(days=7 * row.week_number))
            hours_by_key[(row.department_id, week)] = row.hours
        for (department_id, week), hours in hours_by_key.items():
            self.session.add(
                LaborRequirement(
                    project_id=project.project_id,
                    department_id=department_id,
                    week_start=week,
                    required_hours=hours,
                )
            )
        self.session.commit()
        self.session.refresh(project)
        logger.info("Created project %s from template %s", project.project_id, template_id)
        return project

"""
Conflict detection over a planning snapshot.

Conflict types:
- OverallocatedEmployee: an employee's hours in a week, summed across every
  project, exceed their weekly capacity
- UnderstaffedProject: a current or future requirement is short of its
  department's assigned hours by more than the gap threshold

Usage:
    detector = ConflictDetector(cfg)
    conflicts = detector.detect(employees, projects, departments, requirements, assignments)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from resourceplan.config import ConflictPriorityPolicy, PlanningConfig
from resourceplan.domain.models import Assignment, Department, Employee, LaborRequirement, Project
from resourceplan.weeks import current_week

from .aggregation import (
    employee_department_index,
    employee_week_hours,
    employee_week_projects,
    project_department_week_hours,
)
from .utilization import staffing_percentage, utilization

logger = logging.getLogger(__name__)

UNDERSTAFFING_GAP_HOURS = 10.0


class ConflictType(str, Enum):
    """Types of conflicts."""
    OVERALLOCATED_EMPLOYEE = "OverallocatedEmployee"
    UNDERSTAFFED_PROJECT = "UnderstaffedProject"


class ConflictPriority(str, Enum):
    """Priority tiers, highest first."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {ConflictPriority.HIGH: 0, ConflictPriority.MEDIUM: 1, ConflictPriority.LOW: 2}


@dataclass
class Conflict:
    """A detected overallocation or understaffing."""
    conflict_type: ConflictType
    entity_id: int  # employee id or project id depending on type
    entity_name: str
    week_start: date
    variance: float
    utilization_percentage: float
    priority: ConflictPriority
    description: str
    department_id: Optional[int] = None
    department_name: str = ""
    affected_projects: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "conflict_type": self.conflict_type.value,
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "department_id": self.department_id,
            "department_name": self.department_name,
            "week_start": self.week_start.isoformat(),
            "variance": self.variance,
            "utilization_percentage": self.utilization_percentage,
            "priority": self.priority.value,
            "description": self.description,
            "affected_projects": "; ".join(self.affected_projects),
        }


def overallocation_priority(variance: float, policy: Optional[ConflictPriorityPolicy] = None) -> ConflictPriority:
    policy = policy or ConflictPriorityPolicy()
    if variance >= policy.overallocation_high_hours:
        return ConflictPriority.HIGH
    if variance >= policy.overallocation_medium_hours:
        return ConflictPriority.MEDIUM
    return ConflictPriority.LOW


def understaffing_priority(staffing_pct: float, policy: Optional[ConflictPriorityPolicy] = None) -> ConflictPriority:
    policy = policy or ConflictPriorityPolicy()
    if staffing_pct < policy.understaffing_high_pct:
        return ConflictPriority.HIGH
    if staffing_pct < policy.understaffing_medium_pct:
        return ConflictPriority.MEDIUM
    return ConflictPriority.LOW


def _in_range(week: date, weeks: Optional[Tuple[Optional[date], Optional[date]]]) -> bool:
    if weeks is None:
        return True
    start, end = weeks
    if start is not None and week < start:
        return False
    if end is not None and week > end:
        return False
    return True


def detect_overallocations(
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    projects: Iterable[Project],
    departments: Iterable[Department] = (),
    policy: Optional[ConflictPriorityPolicy] = None,
    weeks: Optional[Tuple[Optional[date], Optional[date]]] = None,
) -> List[Conflict]:
    """
    Find employees whose weekly hours across all projects exceed capacity.

    Args:
        employees: Employee snapshot (capacity source)
        assignments: Assignment snapshot, any number of weeks and projects
        projects: Project snapshot for naming affected projects
        departments: Department snapshot for naming
        policy: Priority mapping table
        weeks: Optional inclusive (start, end) week range

    Returns:
        One conflict per overallocated (employee, week)
    """
    assignments = list(assignments)
    emp_lookup = {emp.employee_id: emp for emp in employees}
    project_names = {p.project_id: p.name for p in projects}
    dept_names = {d.department_id: d.name for d in departments}

    totals = employee_week_hours(assignments)
    involved = employee_week_projects(assignments)

    conflicts: List[Conflict] = []
    for (emp_id, week), total in totals.items():
        if not _in_range(week, weeks):
            continue
        emp = emp_lookup.get(emp_id)
        if emp is None:
            logger.warning("Assignment references employee %s missing from snapshot; skipped", emp_id)
            continue
        capacity = emp.capacity
        if total <= capacity:
            continue
        variance = round(total - capacity, 2)
        names = sorted({project_names.get(pid, f"Project {pid}") for pid in involved[(emp_id, week)]})
        conflicts.append(
            Conflict(
                conflict_type=ConflictType.OVERALLOCATED_EMPLOYEE,
                entity_id=emp_id,
                entity_name=emp.full_name,
                department_id=emp.department_id,
                department_name=dept_names.get(emp.department_id, ""),
                week_start=week,
                variance=variance,
                utilization_percentage=utilization(total, capacity),
                priority=overallocation_priority(variance, policy),
                description=(
                    f"{emp.full_name} is assigned {total:g}h against a {capacity:g}h capacity "
                    f"across {len(names)} project(s)"
                ),
                affected_projects=names,
            )
        )
    return conflicts


def detect_understaffing(
    requirements: Iterable[LaborRequirement],
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    projects: Iterable[Project],
    departments: Iterable[Department] = (),
    today: Optional[date] = None,
    gap_threshold: float = UNDERSTAFFING_GAP_HOURS,
    policy: Optional[ConflictPriorityPolicy] = None,
) -> List[Conflict]:
    """
    Find current or future requirements short by more than ``gap_threshold`` hours.

    Only employees of the requirement's department count towards its
    assigned hours. Requirements for past weeks are ignored.
    """
    employees = list(employees)
    this_week = current_week(today)
    emp_dept = employee_department_index(employees)
    staffed_departments = set(emp_dept.values())
    hours = project_department_week_hours(assignments, emp_dept)
    project_names = {p.project_id: p.name for p in projects}
    dept_names = {d.department_id: d.name for d in departments}

    conflicts: List[Conflict] = []
    for req in requirements:
        if req.week_start < this_week:
            continue
        required = float(req.required_hours or 0.0)
        if req.department_id not in staffed_departments:
            # degrade to zero assigned hours rather than failing the dashboard
            logger.warning(
                "Requirement %s references department %s with no employees; counting 0 assigned hours",
                req.id, req.department_id,
            )
        assigned = hours.get((req.project_id, req.department_id, req.week_start), 0.0)
        gap = required - assigned
        if gap <= gap_threshold:
            continue
        pct = staffing_percentage(assigned, required)
        name = project_names.get(req.project_id, f"Project {req.project_id}")
        dept_name = dept_names.get(req.department_id, "")
        conflicts.append(
            Conflict(
                conflict_type=ConflictType.UNDERSTAFFED_PROJECT,
                entity_id=req.project_id,
                entity_name=name,
                department_id=req.department_id,
                department_name=dept_name,
                week_start=req.week_start,
                variance=round(gap, 2),
                utilization_percentage=pct,
                priority=understaffing_priority(pct, policy),
                description=(
                    f"{name} needs {required:g}h from {dept_name or 'department ' + str(req.department_id)} "
                    f"but has {assigned:g}h assigned"
                ),
                affected_projects=[name],
            )
        )
    return conflicts


def rank_conflicts(conflicts: Iterable[Conflict]) -> List[Conflict]:
    """Sort by priority (High first), then variance descending."""
    return sorted(
        conflicts,
        key=lambda c: (c.priority.rank, -c.variance, c.week_start, c.conflict_type.value, c.entity_id),
    )


class ConflictDetector:
    """Runs both detectors with one configuration and merges the results."""

    def __init__(self, cfg: Optional[PlanningConfig] = None):
        self.cfg = cfg or PlanningConfig()

    def detect(
        self,
        employees: Sequence[Employee],
        projects: Sequence[Project],
        departments: Sequence[Department],
        requirements: Sequence[LaborRequirement],
        assignments: Sequence[Assignment],
        today: Optional[date] = None,
        weeks: Optional[Tuple[Optional[date], Optional[date]]] = None,
    ) -> List[Conflict]:
        over = detect_overallocations(
            employees, assignments, projects, departments, self.cfg.priority, weeks
        )
        under = detect_understaffing(
            requirements,
            assignments,
            employees,
            projects,
            departments,
            today=today,
            gap_threshold=self.cfg.understaffing_gap_hours,
            policy=self.cfg.priority,
        )
        ranked = rank_conflicts(over + under)
        logger.debug("Detected %d overallocation and %d understaffing conflicts", len(over), len(under))
        return ranked

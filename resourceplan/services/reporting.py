"""Dashboard and report aggregates built on the core calculators."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from resourceplan.config import PlanningConfig
from resourceplan.domain.models import Assignment, Department, Employee, LaborRequirement, Project
from resourceplan.weeks import add_weeks, current_week, week_start as to_week_start

from .aggregation import employee_week_hours, employee_week_projects
from .conflicts import detect_understaffing
from .constraints import validate_min_available_hours, validate_week_count
from .requirements import build_staffing_views
from .skills import parse_skills
from .utilization import utilization

TOP_N = 15


@dataclass(frozen=True)
class EmployeeAvailability:
    employee_id: int
    employee_name: str
    email: str
    job_title: str
    skills: List[str]
    hours_per_week: float
    currently_assigned: float
    available_hours: float
    current_utilization: float
    active_projects: int


@dataclass(frozen=True)
class CalendarEvent:
    assignment_id: int
    project_id: int
    project_name: str
    priority: str
    employee_id: int
    employee_name: str
    department_name: str
    week_start: date
    assigned_hours: float
    total_week_hours: float
    capacity: float
    utilization_percentage: float


@dataclass(frozen=True)
class QuickStats:
    active_projects: int
    total_employees: int
    average_utilization: float
    overallocated_employees: int
    understaffed_projects: int


@dataclass(frozen=True)
class ProjectStaffingStatus:
    project_id: int
    project_name: str
    priority: str
    status: str
    department_name: str
    week_start: date
    required_hours: float
    assigned_hours: float
    hours_gap: float
    staffing_percentage: float
    staffing_status: str


@dataclass(frozen=True)
class DepartmentUtilization:
    department_name: str
    total_capacity: float
    assigned_hours: float
    utilization_percentage: float
    employee_count: int


@dataclass(frozen=True)
class WeeklyTrend:
    week_start: date
    total_capacity: float
    total_assigned: float
    utilization_percentage: float
    conflict_count: int


@dataclass(frozen=True)
class EmployeeUtilization:
    employee_id: int
    employee_name: str
    department_name: str
    hours_per_week: float
    assigned_hours: float
    utilization_percentage: float


@dataclass(frozen=True)
class SkillSupply:
    skill: str
    employees_with_skill: int
    projects_requiring: int
    demand_ratio: float


@dataclass
class ReportData:
    department_utilization: List[DepartmentUtilization] = field(default_factory=list)
    project_status_distribution: Dict[str, int] = field(default_factory=dict)
    weekly_trends: List[WeeklyTrend] = field(default_factory=list)
    top_utilized_employees: List[EmployeeUtilization] = field(default_factory=list)
    skill_demand: List[SkillSupply] = field(default_factory=list)


def available_employees(
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    department_id: int,
    week_start,
    min_available_hours: float = 0.0,
) -> List[EmployeeAvailability]:
    """Active employees of a department with at least ``min_available_hours`` free that week."""
    week = to_week_start(week_start)
    floor = validate_min_available_hours(min_available_hours)
    week_assignments = [a for a in assignments if a.week_start == week]
    hours = employee_week_hours(week_assignments)
    projects = employee_week_projects(week_assignments)

    result: List[EmployeeAvailability] = []
    for emp in employees:
        if not emp.is_active or emp.department_id != department_id:
            continue
        assigned = round(hours.get((emp.employee_id, week), 0.0), 2)
        available = round(emp.capacity - assigned, 2)
        if available < floor:
            continue
        result.append(
            EmployeeAvailability(
                employee_id=emp.employee_id,
                employee_name=emp.full_name,
                email=emp.email or "",
                job_title=emp.job_title or "",
                skills=parse_skills(emp.skill_list),
                hours_per_week=emp.capacity,
                currently_assigned=assigned,
                available_hours=available,
                current_utilization=utilization(assigned, emp.capacity),
                active_projects=len(projects.get((emp.employee_id, week), ())),
            )
        )
    result.sort(key=lambda e: (-e.available_hours, e.employee_name))
    return result


def calendar_events(
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    projects: Iterable[Project],
    departments: Iterable[Department],
    start,
    end,
    department_id: Optional[int] = None,
    employee_id: Optional[int] = None,
) -> List[CalendarEvent]:
    """Assignments in a week range with the employee's weekly totals alongside."""
    first = to_week_start(start)
    last = to_week_start(end)
    emp_lookup = {e.employee_id: e for e in employees}
    project_lookup = {p.project_id: p for p in projects}
    dept_names = {d.department_id: d.name for d in departments}

    selected = []
    for a in assignments:
        if not first <= a.week_start <= last:
            continue
        emp = emp_lookup.get(a.employee_id)
        if emp is None:
            continue
        if department_id is not None and emp.department_id != department_id:
            continue
        if employee_id is not None and a.employee_id != employee_id:
            continue
        selected.append(a)

    totals = employee_week_hours(selected)
    events: List[CalendarEvent] = []
    for a in selected:
        emp = emp_lookup[a.employee_id]
        project = project_lookup.get(a.project_id)
        total = round(totals[(a.employee_id, a.week_start)], 2)
        events.append(
            CalendarEvent(
                assignment_id=a.id,
                project_id=a.project_id,
                project_name=project.name if project else "",
                priority=project.priority if project else "",
                employee_id=a.employee_id,
                employee_name=emp.full_name,
                department_name=dept_names.get(emp.department_id, ""),
                week_start=a.week_start,
                assigned_hours=float(a.assigned_hours),
                total_week_hours=total,
                capacity=emp.capacity,
                utilization_percentage=utilization(total, emp.capacity, digits=1),
            )
        )
    events.sort(key=lambda e: (e.week_start, e.employee_name, e.project_name))
    return events


def quick_stats(
    employees: Sequence[Employee],
    projects: Sequence[Project],
    requirements: Sequence[LaborRequirement],
    assignments: Sequence[Assignment],
    today: Optional[date] = None,
    cfg: Optional[PlanningConfig] = None,
) -> QuickStats:
    """Headline numbers for the current week."""
    cfg = cfg or PlanningConfig()
    week = current_week(today)
    active = [e for e in employees if e.is_active]
    hours = employee_week_hours(a for a in assignments if a.week_start == week)

    per_employee = []
    overallocated = 0
    for emp in active:
        assigned = hours.get((emp.employee_id, week), 0.0)
        per_employee.append(utilization(assigned, emp.capacity))
        if assigned > emp.capacity:
            overallocated += 1
    average = round(sum(per_employee) / len(per_employee), 2) if per_employee else 0.0

    understaffed = detect_understaffing(
        requirements, assignments, employees, projects,
        today=today, gap_threshold=cfg.understaffing_gap_hours, policy=cfg.priority,
    )
    return QuickStats(
        active_projects=sum(1 for p in projects if p.active is not False and p.status == "Active"),
        total_employees=len(active),
        average_utilization=average,
        overallocated_employees=overallocated,
        understaffed_projects=len({c.entity_id for c in understaffed}),
    )


def project_staffing_status(
    projects: Iterable[Project],
    requirements: Iterable[LaborRequirement],
    assignments: Iterable[Assignment],
    employees: Iterable[Employee],
    departments: Iterable[Department],
    cfg: Optional[PlanningConfig] = None,
) -> List[ProjectStaffingStatus]:
    """Requirement-level staffing figures with project context."""
    cfg = cfg or PlanningConfig()
    project_lookup = {p.project_id: p for p in projects}
    views = build_staffing_views(requirements, assignments, employees, departments, cfg.staffing)
    rows: List[ProjectStaffingStatus] = []
    for v in views:
        project = project_lookup.get(v.project_id)
        rows.append(
            ProjectStaffingStatus(
                project_id=v.project_id,
                project_name=project.name if project else "",
                priority=project.priority if project else "",
                status=project.status if project else "",
                department_name=v.department_name,
                week_start=v.week_start,
                required_hours=v.required_hours,
                assigned_hours=v.assigned_hours,
                hours_gap=v.remaining_hours,
                staffing_percentage=v.staffing_percentage,
                staffing_status=v.staffing_status,
            )
        )
    rows.sort(key=lambda r: (r.week_start, r.project_name, r.department_name))
    return rows


def department_utilization(
    departments: Iterable[Department],
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    week_start,
) -> List[DepartmentUtilization]:
    """Capacity and assigned hours of each active department for one week."""
    week = to_week_start(week_start)
    hours = employee_week_hours(a for a in assignments if a.week_start == week)
    active = [e for e in employees if e.is_active]

    rows: List[DepartmentUtilization] = []
    for dept in departments:
        if dept.active is False:
            continue
        members = [e for e in active if e.department_id == dept.department_id]
        capacity = sum(e.capacity for e in members)
        assigned = sum(hours.get((e.employee_id, week), 0.0) for e in members)
        rows.append(
            DepartmentUtilization(
                department_name=dept.name,
                total_capacity=round(capacity, 2),
                assigned_hours=round(assigned, 2),
                utilization_percentage=utilization(assigned, capacity),
                employee_count=len(members),
            )
        )
    rows.sort(key=lambda r: -r.utilization_percentage)
    return rows


def weekly_trends(
    employees: Sequence[Employee],
    assignments: Sequence[Assignment],
    start_week,
    week_count: int,
) -> List[WeeklyTrend]:
    """Organization-wide capacity, assigned hours and overallocations per week."""
    week_count = validate_week_count(week_count)
    first = to_week_start(start_week)
    total_capacity = round(sum(e.capacity for e in employees if e.is_active), 2)
    capacity_by_emp = {e.employee_id: e.capacity for e in employees}
    hours = employee_week_hours(assignments)

    trends: List[WeeklyTrend] = []
    for offset in range(week_count):
        week = add_weeks(first, offset)
        week_totals = {emp_id: h for (emp_id, w), h in hours.items() if w == week}
        assigned = round(sum(week_totals.values()), 2)
        conflicts = sum(
            1 for emp_id, h in week_totals.items()
            if emp_id in capacity_by_emp and h > capacity_by_emp[emp_id]
        )
        trends.append(
            WeeklyTrend(
                week_start=week,
                total_capacity=total_capacity,
                total_assigned=assigned,
                utilization_percentage=utilization(assigned, total_capacity),
                conflict_count=conflicts,
            )
        )
    return trends


def top_utilized_employees(
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    departments: Iterable[Department],
    week_start,
    limit: int = TOP_N,
) -> List[EmployeeUtilization]:
    week = to_week_start(week_start)
    hours = employee_week_hours(a for a in assignments if a.week_start == week)
    dept_names = {d.department_id: d.name for d in departments}
    rows = [
        EmployeeUtilization(
            employee_id=e.employee_id,
            employee_name=e.full_name,
            department_name=dept_names.get(e.department_id, ""),
            hours_per_week=e.capacity,
            assigned_hours=round(hours.get((e.employee_id, week), 0.0), 2),
            utilization_percentage=utilization(hours.get((e.employee_id, week), 0.0), e.capacity),
        )
        for e in employees
        if e.is_active
    ]
    rows.sort(key=lambda r: (-r.assigned_hours, r.employee_name))
    return rows[:limit]


def skill_supply(
    employees: Iterable[Employee],
    projects: Iterable[Project],
    limit: int = TOP_N,
) -> List[SkillSupply]:
    """Most common skills among active employees against the active project count."""
    counts: Counter = Counter()
    display: Dict[str, str] = {}
    for emp in employees:
        if not emp.is_active:
            continue
        for skill in parse_skills(emp.skill_list):
            key = skill.lower()
            display.setdefault(key, skill)
            counts[key] += 1

    active_projects = sum(1 for p in projects if p.active is not False and p.status == "Active")
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        SkillSupply(
            skill=display[key],
            employees_with_skill=count,
            projects_requiring=active_projects,
            demand_ratio=round(active_projects / count, 2),
        )
        for key, count in ranked
    ]


def report_data(
    departments: Sequence[Department],
    employees: Sequence[Employee],
    projects: Sequence[Project],
    assignments: Sequence[Assignment],
    start_week=None,
    week_count: int = 12,
) -> ReportData:
    """Everything the reports page needs in one call."""
    first = to_week_start(start_week) if start_week is not None else current_week()
    status_counts = Counter(p.status for p in projects if p.active is not False)
    return ReportData(
        department_utilization=department_utilization(departments, employees, assignments, first),
        project_status_distribution=dict(status_counts.most_common()),
        weekly_trends=weekly_trends(employees, assignments, first, week_count),
        top_utilized_employees=top_utilized_employees(employees, assignments, departments, first),
        skill_demand=skill_supply(employees, projects),
    )

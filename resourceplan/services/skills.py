"""Skill-based candidate ranking for a project week."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from resourceplan.domain.models import Assignment, Department, Employee, Project
from resourceplan.weeks import week_start as to_week_start

from .aggregation import employee_week_hours
from .constraints import validate_id, validate_min_available_hours
from .utilization import utilization


@dataclass(frozen=True)
class SkillMatchRequest:
    project_id: int
    week_start: date
    department_id: Optional[int] = None
    required_skills: Sequence[str] = ()
    min_available_hours: float = 0.0

    def normalized(self) -> "SkillMatchRequest":
        """Validated copy with a Monday week and cleaned skill tokens."""
        return SkillMatchRequest(
            project_id=validate_id(self.project_id, "project_id"),
            week_start=to_week_start(self.week_start),
            department_id=(
                validate_id(self.department_id, "department_id") if self.department_id is not None else None
            ),
            required_skills=tuple(parse_skills(self.required_skills)),
            min_available_hours=validate_min_available_hours(self.min_available_hours),
        )


@dataclass
class SkillMatch:
    employee_id: int
    employee_name: str
    department_id: int
    department_name: str
    job_title: str
    skills: List[str]
    matched_skills: List[str] = field(default_factory=list)
    match_score: int = 0
    match_percentage: float = 0.0
    available_hours: float = 0.0
    current_utilization: float = 0.0


def parse_skills(raw) -> List[str]:
    """Normalize a comma separated string or a list into trimmed, non-empty tokens."""
    if raw is None:
        return []
    tokens = raw.split(",") if isinstance(raw, str) else list(raw)
    return [str(token).strip() for token in tokens if token is not None and str(token).strip()]


def skills_overlap(employee_skill: str, requested: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a = employee_skill.lower()
    b = requested.lower()
    return a in b or b in a


def score_skills(employee_skills: Sequence[str], requested: Sequence[str]):
    """
    Compare an employee's skills against the requested tokens.

    Returns:
        (matched_skills, match_score, match_percentage)
    """
    if not requested:
        return list(employee_skills), len(employee_skills), 100.0
    matched = [req for req in requested if any(skills_overlap(skill, req) for skill in employee_skills)]
    score = len(matched)
    pct = round(score / len(requested) * 100, 1) if score > 0 else 0.0
    return matched, score, pct


def find_skill_matches(
    request: SkillMatchRequest,
    employees: Iterable[Employee],
    assignments: Iterable[Assignment],
    departments: Iterable[Department] = (),
) -> List[SkillMatch]:
    """
    Rank candidate employees for a project week.

    Args:
        request: Target project, week, optional department filter, skills and hours floor
        employees: Employee snapshot
        assignments: Assignments for the target week (other weeks are ignored)
        departments: Department snapshot for naming

    Returns:
        Matches sorted by match percentage, match score and available hours, all descending
    """
    request = request.normalized()
    week = request.week_start
    week_assignments = [a for a in assignments if a.week_start == week]
    already_on_project = {a.employee_id for a in week_assignments if a.project_id == request.project_id}
    hours = employee_week_hours(week_assignments)
    dept_names = {d.department_id: d.name for d in departments}

    results: List[SkillMatch] = []
    for emp in employees:
        if not emp.is_active:
            continue
        if request.department_id is not None and emp.department_id != request.department_id:
            continue
        if emp.employee_id in already_on_project:
            continue

        assigned = hours.get((emp.employee_id, week), 0.0)
        available = round(emp.capacity - assigned, 2)
        if available < request.min_available_hours:
            continue

        skills = parse_skills(emp.skill_list)
        matched, score, pct = score_skills(skills, request.required_skills)
        results.append(
            SkillMatch(
                employee_id=emp.employee_id,
                employee_name=emp.full_name,
                department_id=emp.department_id,
                department_name=dept_names.get(emp.department_id, ""),
                job_title=emp.job_title or "",
                skills=skills,
                matched_skills=matched,
                match_score=score,
                match_percentage=pct,
                available_hours=available,
                current_utilization=utilization(assigned, emp.capacity, digits=1),
            )
        )

    results.sort(key=lambda m: (-m.match_percentage, -m.match_score, -m.available_hours))
    return results


def _distinct_sorted(skill_lists: Iterable[Sequence[str]]) -> List[str]:
    seen: Dict[str, str] = {}
    for skills in skill_lists:
        for skill in parse_skills(skills):
            seen.setdefault(skill.lower(), skill)
    return sorted(seen.values(), key=str.lower)


def all_skills(employees: Iterable[Employee]) -> List[str]:
    """Distinct skills of active employees, case-insensitive, sorted."""
    return _distinct_sorted(emp.skill_list for emp in employees if emp.is_active)


def project_skills(project: Project, employees: Iterable[Employee]) -> List[str]:
    """Skills available from active employees of the project's departments."""
    department_ids = set(project.department_ids)
    return _distinct_sorted(
        emp.skill_list for emp in employees if emp.is_active and emp.department_id in department_ids
    )

"""Tests for conflict detection and ranking (pure, transient objects)."""

from datetime import date, timedelta

import pytest

from resourceplan.config import ConflictPriorityPolicy, PlanningConfig
from resourceplan.domain.models import Assignment, Department, Employee, LaborRequirement, Project
from resourceplan.services.conflicts import (
    ConflictDetector,
    ConflictPriority,
    ConflictType,
    detect_overallocations,
    detect_understaffing,
    overallocation_priority,
    rank_conflicts,
    understaffing_priority,
)

MONDAY = date(2030, 1, 7)
NEXT = MONDAY + timedelta(days=7)


@pytest.fixture
def snapshot():
    departments = [Department(department_id=1, name="Engineering"), Department(department_id=2, name="Design")]
    employees = [
        Employee(employee_id=1, first_name="Alice", last_name="Smith", department_id=1,
                 capacity_hours_per_week=40, skills=[]),
        Employee(employee_id=2, first_name="Bob", last_name="Jones", department_id=1,
                 capacity_hours_per_week=40, skills=[]),
        Employee(employee_id=3, first_name="Carol", last_name="White", department_id=2,
                 capacity_hours_per_week=30, skills=[]),
    ]
    projects = [Project(project_id=1, name="Apollo"), Project(project_id=2, name="Zephyr")]
    return departments, employees, projects


def _assign(project_id, employee_id, week, hours):
    return Assignment(project_id=project_id, employee_id=employee_id, week_start=week, assigned_hours=hours)


def test_overallocation_sums_across_projects(snapshot):
    departments, employees, projects = snapshot
    assignments = [_assign(1, 1, MONDAY, 25), _assign(2, 1, MONDAY, 20)]

    conflicts = detect_overallocations(employees, assignments, projects, departments)

    assert len(conflicts) == 1
    c = conflicts[0]
    assert c.conflict_type == ConflictType.OVERALLOCATED_EMPLOYEE
    assert c.entity_id == 1
    assert c.entity_name == "Alice Smith"
    assert c.department_name == "Engineering"
    assert c.variance == 5.0
    assert c.utilization_percentage == 112.5
    assert c.affected_projects == ["Apollo", "Zephyr"]
    assert c.priority == ConflictPriority.MEDIUM


def test_exactly_at_capacity_is_not_a_conflict(snapshot):
    departments, employees, projects = snapshot
    assignments = [_assign(1, 1, MONDAY, 20), _assign(2, 1, MONDAY, 20)]
    assert detect_overallocations(employees, assignments, projects, departments) == []


def test_overallocation_lists_each_project_name_once(snapshot):
    departments, employees, _ = snapshot
    projects = [Project(project_id=1, name="Apollo"), Project(project_id=2, name="Apollo")]
    assignments = [_assign(1, 1, MONDAY, 25), _assign(2, 1, MONDAY, 20)]

    conflicts = detect_overallocations(employees, assignments, projects, departments)

    assert conflicts[0].affected_projects == ["Apollo"]


def test_overallocation_is_per_week(snapshot):
    departments, employees, projects = snapshot
    assignments = [_assign(1, 1, MONDAY, 30), _assign(2, 1, NEXT, 30)]
    assert detect_overallocations(employees, assignments, projects, departments) == []


def test_overallocation_week_range(snapshot):
    departments, employees, projects = snapshot
    assignments = [_assign(1, 3, MONDAY, 35), _assign(1, 3, NEXT, 35)]
    everything = detect_overallocations(employees, assignments, projects, departments)
    assert {c.week_start for c in everything} == {MONDAY, NEXT}
    ranged = detect_overallocations(employees, assignments, projects, departments, weeks=(NEXT, None))
    assert [c.week_start for c in ranged] == [NEXT]


def test_understaffing_counts_only_department_employees(snapshot):
    departments, employees, projects = snapshot
    requirements = [LaborRequirement(id=1, project_id=1, department_id=1, week_start=MONDAY, required_hours=40)]
    # Carol (Design) does not count towards the Engineering requirement
    assignments = [_assign(1, 1, MONDAY, 15), _assign(1, 3, MONDAY, 30)]

    conflicts = detect_understaffing(requirements, assignments, employees, projects, departments, today=MONDAY)

    assert len(conflicts) == 1
    c = conflicts[0]
    assert c.conflict_type == ConflictType.UNDERSTAFFED_PROJECT
    assert c.entity_id == 1
    assert c.entity_name == "Apollo"
    assert c.variance == 25.0
    assert c.utilization_percentage == 37.5
    assert c.priority == ConflictPriority.HIGH


def test_understaffing_gap_threshold_is_strict(snapshot):
    departments, employees, projects = snapshot
    requirements = [LaborRequirement(id=1, project_id=1, department_id=1, week_start=MONDAY, required_hours=40)]
    assignments = [_assign(1, 1, MONDAY, 30)]
    assert detect_understaffing(requirements, assignments, employees, projects, today=MONDAY) == []
    assert len(detect_understaffing(requirements, assignments, employees, projects, today=MONDAY,
                                    gap_threshold=5)) == 1


def test_past_week_requirements_ignored(snapshot):
    departments, employees, projects = snapshot
    requirements = [
        LaborRequirement(id=1, project_id=1, department_id=1, week_start=MONDAY, required_hours=100),
        LaborRequirement(id=2, project_id=1, department_id=1, week_start=NEXT, required_hours=100),
    ]
    conflicts = detect_understaffing(requirements, [], employees, projects, today=NEXT + timedelta(days=2))
    assert [c.week_start for c in conflicts] == [NEXT]


def test_requirement_for_unstaffed_department_logs_warning(snapshot, caplog):
    departments, employees, projects = snapshot
    requirements = [LaborRequirement(id=5, project_id=2, department_id=9, week_start=MONDAY, required_hours=20)]
    with caplog.at_level("WARNING", logger="resourceplan.services.conflicts"):
        conflicts = detect_understaffing(requirements, [], employees, projects, today=MONDAY)
    assert len(conflicts) == 1
    assert conflicts[0].utilization_percentage == 0.0
    assert "no employees" in caplog.text


def test_priority_mapping():
    assert overallocation_priority(12) == ConflictPriority.HIGH
    assert overallocation_priority(10) == ConflictPriority.HIGH
    assert overallocation_priority(5) == ConflictPriority.MEDIUM
    assert overallocation_priority(0.5) == ConflictPriority.LOW
    assert understaffing_priority(49.9) == ConflictPriority.HIGH
    assert understaffing_priority(60) == ConflictPriority.MEDIUM
    assert understaffing_priority(80) == ConflictPriority.LOW
    policy = ConflictPriorityPolicy(overallocation_high_hours=2, overallocation_medium_hours=1)
    assert overallocation_priority(2, policy) == ConflictPriority.HIGH


def test_detector_merges_and_ranks(snapshot):
    departments, employees, projects = snapshot
    assignments = [
        _assign(1, 1, MONDAY, 42),  # 2h over: Low
        _assign(1, 2, MONDAY, 52),  # 12h over: High
        _assign(2, 3, MONDAY, 36),  # 6h over: Medium
    ]
    requirements = [LaborRequirement(id=1, project_id=2, department_id=1, week_start=NEXT, required_hours=30)]

    conflicts = ConflictDetector(PlanningConfig()).detect(
        employees, projects, departments, requirements, assignments, today=MONDAY
    )

    assert [c.priority for c in conflicts] == [
        ConflictPriority.HIGH,
        ConflictPriority.HIGH,
        ConflictPriority.MEDIUM,
        ConflictPriority.LOW,
    ]
    # High tier ordered by variance descending
    assert conflicts[0].conflict_type == ConflictType.UNDERSTAFFED_PROJECT
    assert conflicts[0].variance == 30.0
    assert conflicts[1].entity_name == "Bob Jones"


def test_rank_conflicts_is_deterministic(snapshot):
    departments, employees, projects = snapshot
    assignments = [_assign(1, 1, NEXT, 45), _assign(1, 1, MONDAY, 45)]
    ranked = rank_conflicts(detect_overallocations(employees, assignments, projects, departments))
    assert [c.week_start for c in ranked] == [MONDAY, NEXT]


def test_conflict_to_dict(snapshot):
    departments, employees, projects = snapshot
    (c,) = detect_overallocations(employees, [_assign(1, 1, MONDAY, 45)], projects, departments)
    data = c.to_dict()
    assert data["conflict_type"] == "OverallocatedEmployee"
    assert data["week_start"] == "2030-01-07"
    assert data["priority"] == "Medium"
    assert data["affected_projects"] == "Apollo"

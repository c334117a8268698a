"""Tests for availability, calendar, quick stats and report aggregates."""

from datetime import date, timedelta

import pytest

from resourceplan.errors import ValidationError

MONDAY = date(2030, 1, 7)
NEXT = MONDAY + timedelta(days=7)


@pytest.fixture
def busy_planner(planner):
    planner.bulk_create_assignments(1, MONDAY, [(1, 25), (3, 20)])
    planner.bulk_create_assignments(2, MONDAY, [(1, 20), (2, 10)])
    planner.bulk_create_assignments(1, NEXT, [(2, 40)])
    return planner


def test_available_employees(busy_planner):
    rows = busy_planner.get_available_employees(1, MONDAY + timedelta(days=4))
    # Alice is over capacity, Dan is inactive
    assert [r.employee_name for r in rows] == ["Bob Jones"]
    bob = rows[0]
    assert bob.currently_assigned == 10.0
    assert bob.available_hours == 30.0
    assert bob.current_utilization == 25.0
    assert bob.active_projects == 1
    assert bob.skills == ["Java"]

    assert busy_planner.get_available_employees(1, MONDAY, min_available_hours=31) == []
    with pytest.raises(ValidationError):
        busy_planner.get_available_employees(1, MONDAY, min_available_hours=-1)


def test_calendar_events(busy_planner):
    events = busy_planner.get_calendar_events(MONDAY, NEXT)
    assert len(events) == 5
    assert [e.week_start for e in events] == [MONDAY] * 4 + [NEXT]
    alice = [e for e in events if e.employee_id == 1]
    assert {e.project_name for e in alice} == {"Apollo", "Zephyr"}
    assert all(e.total_week_hours == 45.0 for e in alice)
    assert all(e.utilization_percentage == 112.5 for e in alice)

    design_only = busy_planner.get_calendar_events(MONDAY, NEXT, department_id=2)
    assert [e.employee_name for e in design_only] == ["Carol White"]
    assert design_only[0].utilization_percentage == 66.7

    bob_only = busy_planner.get_calendar_events(NEXT, NEXT, employee_id=2)
    assert [(e.project_name, e.assigned_hours) for e in bob_only] == [("Apollo", 40.0)]


def test_quick_stats(busy_planner):
    busy_planner.save_labor_requirement(1, 1, MONDAY, 60)
    busy_planner.save_labor_requirement(2, 1, MONDAY, 30)
    stats = busy_planner.get_quick_stats(today=MONDAY)
    assert stats.active_projects == 2
    assert stats.total_employees == 3
    # (112.5 + 25 + 66.67) / 3
    assert stats.average_utilization == 68.06
    assert stats.overallocated_employees == 1
    # Apollo engineering has 25 of 60; Zephyr has 30 of 30
    assert stats.understaffed_projects == 1


def test_project_staffing_status(busy_planner):
    busy_planner.save_labor_requirement(1, 1, MONDAY, 20)
    busy_planner.save_labor_requirement(1, 2, MONDAY, 40)
    rows = busy_planner.get_project_staffing_status(1)
    by_dept = {r.department_name: r for r in rows}
    assert by_dept["Engineering"].staffing_status == "Overstaffed"
    assert by_dept["Engineering"].hours_gap == -5.0
    assert by_dept["Design"].staffing_percentage == 50.0
    assert by_dept["Design"].project_name == "Apollo"
    assert by_dept["Design"].priority == "High"


def test_report_data(busy_planner):
    report = busy_planner.get_report_data(start_week=MONDAY, week_count=2)

    depts = report.department_utilization
    assert [d.department_name for d in depts] == ["Engineering", "Design"]
    assert depts[0].employee_count == 2
    assert depts[0].assigned_hours == 55.0
    assert depts[0].utilization_percentage == 68.75
    assert depts[1].utilization_percentage == 66.67

    assert report.project_status_distribution == {"Active": 2}

    first, second = report.weekly_trends
    assert first.total_capacity == 110.0
    assert first.total_assigned == 75.0
    assert first.conflict_count == 1
    assert second.total_assigned == 40.0
    assert second.conflict_count == 0

    assert report.top_utilized_employees[0].employee_name == "Alice Smith"
    assert report.top_utilized_employees[0].assigned_hours == 45.0

    skills = {s.skill: s for s in report.skill_demand}
    assert set(skills) == {"Python", "SQL", "Java", "Figma", "UX Research"}
    assert skills["Python"].employees_with_skill == 1
    assert skills["Python"].demand_ratio == 2.0

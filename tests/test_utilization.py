"""Tests for utilization, staffing and input constraints."""

import pytest

from resourceplan.config import HoursPolicy, LoadPolicy, StaffingPolicy, TimelinePolicy
from resourceplan.errors import ValidationError
from resourceplan.services.constraints import (
    validate_assignment_hours,
    validate_id,
    validate_priority,
    validate_requirement_hours,
    validate_week_count,
)
from resourceplan.services.utilization import load_level, staffing_percentage, staffing_status, utilization


def test_utilization_zero_capacity():
    assert utilization(10, 0) == 0.0
    assert utilization(0, 0) == 0.0


def test_utilization_rounding():
    assert utilization(45, 40) == 112.5
    assert utilization(1, 3) == 33.33
    assert utilization(1, 3, digits=1) == 33.3


def test_staffing_percentage_zero_requirement_is_full():
    assert staffing_percentage(0, 0) == 100.0
    assert staffing_percentage(12, 0) == 100.0
    assert staffing_percentage(20, 40) == 50.0


def test_staffing_status_bounds():
    assert staffing_status(84.99) == "Understaffed"
    assert staffing_status(85) == "Adequate"
    assert staffing_status(110) == "Adequate"
    assert staffing_status(110.01) == "Overstaffed"


def test_staffing_status_custom_policy():
    policy = StaffingPolicy(understaffed_below=50, overstaffed_above=150)
    assert staffing_status(60, policy) == "Adequate"
    assert staffing_status(151, policy) == "Overstaffed"


def test_load_level_bounds():
    assert load_level(59.9) == "Light"
    assert load_level(60) == "Medium"
    assert load_level(84.9) == "Medium"
    assert load_level(85) == "Heavy"
    assert load_level(50, LoadPolicy(light_below=40, medium_below=70)) == "Medium"


def test_assignment_hours_bounds():
    assert validate_assignment_hours(0) == 0.0
    assert validate_assignment_hours("168") == 168.0
    with pytest.raises(ValidationError) as exc:
        validate_assignment_hours(168.5)
    assert exc.value.field == "assigned_hours"
    with pytest.raises(ValidationError):
        validate_assignment_hours(-1)
    with pytest.raises(ValidationError):
        validate_assignment_hours("lots")


def test_requirement_hours_bounds():
    assert validate_requirement_hours(9999.99) == 9999.99
    with pytest.raises(ValidationError):
        validate_requirement_hours(10000)
    with pytest.raises(ValidationError):
        validate_requirement_hours(5, HoursPolicy(requirement_max=4))


def test_week_count_bounds():
    assert validate_week_count(1) == 1
    assert validate_week_count(52) == 52
    for bad in (0, 53, 2.5, True, "12"):
        with pytest.raises(ValidationError):
            validate_week_count(bad)
    assert validate_week_count(60, TimelinePolicy(max_weeks=104)) == 60


def test_validate_id():
    assert validate_id(3, "project_id") == 3
    assert validate_id("7", "project_id") == 7
    for bad in (0, -1, 1.5, "abc", None, True):
        with pytest.raises(ValidationError):
            validate_id(bad, "project_id")


def test_validate_priority_case_insensitive():
    assert validate_priority("high") == "High"
    with pytest.raises(ValidationError):
        validate_priority("urgent")

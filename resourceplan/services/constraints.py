"""Input validation for planner writes and queries."""

from __future__ import annotations

import math
from typing import Optional

from resourceplan.config import HoursPolicy, TimelinePolicy
from resourceplan.domain.models import PRIORITIES, PROJECT_STATUSES
from resourceplan.errors import ValidationError


def _check_hours(value, maximum: float, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(field, "must be a number")
    try:
        hours = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, f"must be a number, got {value!r}") from exc
    if math.isnan(hours):
        raise ValidationError(field, "must be a number")
    if hours < 0:
        raise ValidationError(field, "Hours cannot be negative")
    if hours > maximum:
        raise ValidationError(field, f"Hours cannot exceed {maximum:g}")
    return hours


def validate_assignment_hours(value, policy: Optional[HoursPolicy] = None) -> float:
    """Check assigned hours are within [0, 168] (or the policy maximum)."""
    policy = policy or HoursPolicy()
    return _check_hours(value, policy.assignment_max, "assigned_hours")


def validate_requirement_hours(value, policy: Optional[HoursPolicy] = None) -> float:
    """Check required hours are within [0, 9999.99] (or the policy maximum)."""
    policy = policy or HoursPolicy()
    return _check_hours(value, policy.requirement_max, "required_hours")


def validate_min_available_hours(value, policy: Optional[HoursPolicy] = None) -> float:
    policy = policy or HoursPolicy()
    return _check_hours(value, policy.assignment_max, "min_available_hours")


def validate_week_count(value, policy: Optional[TimelinePolicy] = None) -> int:
    policy = policy or TimelinePolicy()
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("week_count", f"must be an integer, got {value!r}")
    if not policy.min_weeks <= value <= policy.max_weeks:
        raise ValidationError(
            "week_count", f"must be between {policy.min_weeks} and {policy.max_weeks}"
        )
    return value


def validate_id(value, field: str) -> int:
    """Check an entity id is a positive integer."""
    if isinstance(value, bool):
        raise ValidationError(field, "must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, f"must be a positive integer, got {value!r}") from exc
    if number != value and not (isinstance(value, str) and value.strip().isdigit()):
        raise ValidationError(field, f"must be a positive integer, got {value!r}")
    if number <= 0:
        raise ValidationError(field, "must be a positive integer")
    return number


def validate_priority(value: str) -> str:
    for priority in PRIORITIES:
        if str(value).strip().lower() == priority.lower():
            return priority
    raise ValidationError("priority", f"must be one of {', '.join(PRIORITIES)}")


def validate_status(value: str) -> str:
    for status in PROJECT_STATUSES:
        if str(value).strip().lower() == status.lower():
            return status
    raise ValidationError("status", f"must be one of {', '.join(PROJECT_STATUSES)}")

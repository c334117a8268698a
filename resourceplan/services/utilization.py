"""Utilization and staffing calculations.

Pure functions over hour totals. The threshold constants are the fixed
policy of the engine; callers needing other cut points pass their own
``StaffingPolicy`` / ``LoadPolicy`` or wrap these functions.
"""

from __future__ import annotations

from typing import Optional

from resourceplan.config import LoadPolicy, StaffingPolicy

UNDERSTAFFED = "Understaffed"
ADEQUATE = "Adequate"
OVERSTAFFED = "Overstaffed"

LIGHT = "Light"
MEDIUM = "Medium"
HEAVY = "Heavy"

UNDERSTAFFED_BELOW = 85.0
OVERSTAFFED_ABOVE = 110.0
LIGHT_BELOW = 60.0
MEDIUM_BELOW = 85.0


def utilization(used_hours: float, total_hours: float, digits: int = 2) -> float:
    """
    Percentage of total hours in use.

    Returns 0 when there is no capacity at all.
    """
    if not total_hours:
        return 0.0
    return round(float(used_hours) / float(total_hours) * 100, digits)


def staffing_percentage(assigned_hours: float, required_hours: float) -> float:
    """
    Percentage of required hours covered by assignments.

    A zero requirement is fully staffed by definition and returns 100.
    """
    if not required_hours:
        return 100.0
    return round(float(assigned_hours) / float(required_hours) * 100, 2)


def staffing_status(percentage: float, policy: Optional[StaffingPolicy] = None) -> str:
    low = policy.understaffed_below if policy else UNDERSTAFFED_BELOW
    high = policy.overstaffed_above if policy else OVERSTAFFED_ABOVE
    if percentage < low:
        return UNDERSTAFFED
    if percentage > high:
        return OVERSTAFFED
    return ADEQUATE


def load_level(utilization_pct: float, policy: Optional[LoadPolicy] = None) -> str:
    light = policy.light_below if policy else LIGHT_BELOW
    medium = policy.medium_below if policy else MEDIUM_BELOW
    if utilization_pct < light:
        return LIGHT
    if utilization_pct < medium:
        return MEDIUM
    return HEAVY

"""Planning policy configuration.

The defaults reproduce the fixed policy of the engine (85/110 staffing bounds,
60/85 load bounds, 10 hour understaffing gap, 0-168 assignment hours,
0-9999.99 requirement hours, 1-52 timeline weeks). A YAML or JSON file may
override any of them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ValidationError

DEFAULT_DB_URL = "sqlite:///resourceplan.db"


@dataclass(frozen=True)
class HoursPolicy:
    assignment_max: float = 168.0
    requirement_max: float = 9999.99


@dataclass(frozen=True)
class StaffingPolicy:
    understaffed_below: float = 85.0
    overstaffed_above: float = 110.0


@dataclass(frozen=True)
class LoadPolicy:
    light_below: float = 60.0
    medium_below: float = 85.0


@dataclass(frozen=True)
class TimelinePolicy:
    min_weeks: int = 1
    max_weeks: int = 52
    default_weeks: int = 12


@dataclass(frozen=True)
class ConflictPriorityPolicy:
    """Mapping table from raw conflict numbers to High/Medium/Low.

    Overallocations are tiered by hours over capacity, understaffing by the
    staffing percentage of the requirement.
    """

    overallocation_high_hours: float = 10.0
    overallocation_medium_hours: float = 5.0
    understaffing_high_pct: float = 50.0
    understaffing_medium_pct: float = 75.0


@dataclass(frozen=True)
class PlanningConfig:
    database_url: str = DEFAULT_DB_URL
    logging_level: str = "INFO"
    understaffing_gap_hours: float = 10.0
    hours: HoursPolicy = field(default_factory=HoursPolicy)
    staffing: StaffingPolicy = field(default_factory=StaffingPolicy)
    load: LoadPolicy = field(default_factory=LoadPolicy)
    timeline: TimelinePolicy = field(default_factory=TimelinePolicy)
    priority: ConflictPriorityPolicy = field(default_factory=ConflictPriorityPolicy)


_SECTIONS = {
    "hours": HoursPolicy,
    "staffing": StaffingPolicy,
    "load": LoadPolicy,
    "timeline": TimelinePolicy,
    "priority": ConflictPriorityPolicy,
}


def _build_section(name: str, cls, raw: Any):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValidationError(name, "must be a mapping")
    allowed = {f.name: f for f in fields(cls)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in allowed:
            raise ValidationError(f"{name}.{key}", "unknown setting")
        expected = int if allowed[key].type in ("int", int) else float
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name}.{key}", "must be a number")
        if value < 0:
            raise ValidationError(f"{name}.{key}", "must not be negative")
        values[key] = expected(value)
    return cls(**values)


def _validate(cfg: PlanningConfig) -> None:
    if cfg.staffing.understaffed_below > cfg.staffing.overstaffed_above:
        raise ValidationError("staffing", "understaffed_below must not exceed overstaffed_above")
    if cfg.load.light_below > cfg.load.medium_below:
        raise ValidationError("load", "light_below must not exceed medium_below")
    tl = cfg.timeline
    if not (1 <= tl.min_weeks <= tl.default_weeks <= tl.max_weeks):
        raise ValidationError("timeline", "expected 1 <= min_weeks <= default_weeks <= max_weeks")
    if cfg.priority.overallocation_medium_hours > cfg.priority.overallocation_high_hours:
        raise ValidationError("priority", "overallocation_medium_hours must not exceed overallocation_high_hours")
    if cfg.priority.understaffing_high_pct > cfg.priority.understaffing_medium_pct:
        raise ValidationError("priority", "understaffing_high_pct must not exceed understaffing_medium_pct")


def config_from_dict(data: Dict[str, Any]) -> PlanningConfig:
    """Build a validated config from a plain mapping."""
    data = dict(data or {})
    kwargs: Dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        kwargs[name] = _build_section(name, cls, data.pop(name, None))

    if "database_url" in data:
        kwargs["database_url"] = str(data.pop("database_url"))
    if "logging_level" in data:
        kwargs["logging_level"] = str(data.pop("logging_level")).upper()
    if "understaffing_gap_hours" in data:
        gap = data.pop("understaffing_gap_hours")
        if isinstance(gap, bool) or not isinstance(gap, (int, float)) or gap < 0:
            raise ValidationError("understaffing_gap_hours", "must be a non-negative number")
        kwargs["understaffing_gap_hours"] = float(gap)
    if data:
        raise ValidationError(", ".join(sorted(data)), "unknown setting")

    cfg = PlanningConfig(**kwargs)
    _validate(cfg)
    return cfg


def load_config(path: Optional[str | Path] = None) -> PlanningConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file path; ``None`` returns the default policy

    Returns:
        PlanningConfig
    """
    if path is None:
        return PlanningConfig()
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    return config_from_dict(data or {})

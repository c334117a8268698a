"""Planning engine facade."""

from .planner import ResourcePlanner

__all__ = ["ResourcePlanner"]

"""Exception types raised by the resource planning engine."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional


class ResourcePlanError(Exception):
    """Base class for all engine errors."""


class ValidationError(ResourcePlanError, ValueError):
    """A single input failed validation.

    Attributes:
        field: Name of the offending input field
        message: Human readable reason
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class DuplicateAssignment(ResourcePlanError):
    """An assignment already exists for the (project, employee, week) key.

    This is a business outcome rather than a failure: the caller should
    update the existing assignment instead of creating a new one.
    """

    def __init__(
        self,
        project_id: int,
        employee_id: int,
        week_start: date,
        existing_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Assignment already exists for project {project_id}, "
            f"employee {employee_id}, week {week_start.isoformat()}"
        )
        self.project_id = project_id
        self.employee_id = employee_id
        self.week_start = week_start
        self.existing_id = existing_id


class NotFound(ResourcePlanError, LookupError):
    """An operation referenced an unknown entity id."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConcurrentWriteConflict(ResourcePlanError):
    """Another writer stored the same unique key between our lookup and insert.

    Retrying the call applies it as an update of the row the other writer
    created.
    """

    def __init__(self, entity: str, key: tuple) -> None:
        super().__init__(f"{entity} {key} was written concurrently; retry the request")
        self.entity = entity
        self.key = key


class ComputationError(ResourcePlanError):
    """Unexpected internal state during a derived computation.

    Computations log and fall back to neutral values instead of raising this
    where dashboards must keep rendering.
    """

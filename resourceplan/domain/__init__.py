"""Domain models and data access layer."""

from .models import (
    Assignment,
    Base,
    Department,
    Employee,
    LaborRequirement,
    Project,
    ProjectDepartment,
    ProjectTemplate,
)
from .repositories import (
    AssignmentRepository,
    DepartmentRepository,
    EmployeeRepository,
    LaborRequirementRepository,
    ProjectRepository,
    TemplateRepository,
)

__all__ = [
    "Assignment",
    "Base",
    "Department",
    "Employee",
    "LaborRequirement",
    "Project",
    "ProjectDepartment",
    "ProjectTemplate",
    "AssignmentRepository",
    "DepartmentRepository",
    "EmployeeRepository",
    "LaborRequirementRepository",
    "ProjectRepository",
    "TemplateRepository",
]

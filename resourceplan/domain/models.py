"""SQLAlchemy models for weekly resource planning."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, relationship


PRIORITIES = ("Low", "Medium", "High", "Critical")
PROJECT_STATUSES = ("Planning", "Active", "OnHold", "Completed", "Cancelled")


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Department(Base):
    """Organizational unit that owns employees and receives labor requirements."""

    __tablename__ = "departments"

    department_id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    employees = relationship("Employee", back_populates="department")

    def __repr__(self) -> str:
        return f"<Department(id={self.department_id}, name='{self.name}')>"


class Employee(Base):
    """Employee with a weekly capacity and free-text skill tokens."""

    __tablename__ = "employees"

    employee_id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    job_title = Column(String(100), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.department_id"), nullable=False)
    capacity_hours_per_week = Column(Float, nullable=False, default=40.0)
    skills = Column(JSON, nullable=False, default=list)  # ordered list of tokens
    active = Column(Boolean, nullable=False, default=True)

    department = relationship("Department", back_populates="employees")
    assignments = relationship("Assignment", back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def capacity(self) -> float:
        # Transient objects have no column defaults applied yet
        value = self.capacity_hours_per_week
        return 40.0 if value is None else float(value)

    @property
    def skill_list(self) -> list:
        return list(self.skills or [])

    @property
    def is_active(self) -> bool:
        return self.active is not False

    def __repr__(self) -> str:
        return f"<Employee(id={self.employee_id}, name='{self.full_name}', dept={self.department_id})>"


class Project(Base):
    """Project that demands weekly hours from one or more departments."""

    __tablename__ = "projects"

    project_id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    priority = Column(String(20), nullable=False, default="Medium")
    status = Column(String(20), nullable=False, default="Active")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    departments = relationship("ProjectDepartment", back_populates="project")
    requirements = relationship("LaborRequirement", back_populates="project")
    assignments = relationship("Assignment", back_populates="project")

    @property
    def department_ids(self) -> list:
        return [link.department_id for link in self.departments if link.active is not False]

    def __repr__(self) -> str:
        return f"<Project(id={self.project_id}, name='{self.name}', priority={self.priority})>"


class ProjectDepartment(Base):
    """Link between a project and a participating department."""

    __tablename__ = "project_departments"
    __table_args__ = (UniqueConstraint("project_id", "department_id", name="uq_project_department"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.department_id"), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    project = relationship("Project", back_populates="departments")
    department = relationship("Department")


class LaborRequirement(Base):
    """Hours a project needs from a department in one week."""

    __tablename__ = "labor_requirements"
    __table_args__ = (
        UniqueConstraint("project_id", "department_id", "week_start", name="uq_requirement_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.department_id"), nullable=False)
    week_start = Column(Date, nullable=False)  # Monday
    required_hours = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    modified_at = Column(DateTime, nullable=False, default=utcnow)

    project = relationship("Project", back_populates="requirements")
    department = relationship("Department")

    def __repr__(self) -> str:
        return (
            f"<LaborRequirement(project={self.project_id}, dept={self.department_id}, "
            f"week={self.week_start}, hours={self.required_hours})>"
        )


class Assignment(Base):
    """Hours of one employee committed to one project for one week."""

    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint("project_id", "employee_id", "week_start", name="uq_assignment_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.project_id"), nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), nullable=False)
    week_start = Column(Date, nullable=False)  # Monday
    assigned_hours = Column(Float, nullable=False, default=0.0)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    modified_at = Column(DateTime, nullable=False, default=utcnow)

    project = relationship("Project", back_populates="assignments")
    employee = relationship("Employee", back_populates="assignments")

    def __repr__(self) -> str:
        return (
            f"<Assignment(id={self.id}, project={self.project_id}, emp={self.employee_id}, "
            f"week={self.week_start}, hours={self.assigned_hours})>"
        )


class ProjectTemplate(Base):
    """Reusable project shape: departments and per-week default hours."""

    __tablename__ = "project_templates"

    template_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=True)
    priority = Column(String(20), nullable=False, default="Medium")
    duration_weeks = Column(Integer, nullable=False, default=12)
    department_ids = Column(JSON, nullable=False, default=list)
    # [{"department_id": int, "week_number": int, "hours": float}, ...]
    default_hours = Column(JSON, nullable=False, default=list)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<ProjectTemplate(id={self.template_id}, name='{self.name}', weeks={self.duration_weeks})>"

"""Repository classes for data access."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from .models import (
    Assignment,
    Department,
    Employee,
    LaborRequirement,
    Project,
    ProjectDepartment,
    ProjectTemplate,
)


class DepartmentRepository:
    """Repository for department data access."""

    @staticmethod
    def get_all(session: Session, active_only: bool = False) -> List[Department]:
        """Get all departments ordered by name."""
        query = session.query(Department)
        if active_only:
            query = query.filter(Department.active.is_(True))
        return query.order_by(Department.name).all()

    @staticmethod
    def get_by_id(session: Session, department_id: int) -> Optional[Department]:
        """Get department by ID."""
        return session.get(Department, department_id)

    @staticmethod
    def create(session: Session, department: Department) -> Department:
        """Create a new department."""
        session.add(department)
        session.commit()
        session.refresh(department)
        return department

    @staticmethod
    def bulk_create(session: Session, departments: List[Department]) -> None:
        """Create multiple departments."""
        session.add_all(departments)
        session.commit()


class EmployeeRepository:
    """Repository for employee data access."""

    @staticmethod
    def get_all(session: Session) -> List[Employee]:
        """Get all employees."""
        return session.query(Employee).order_by(Employee.employee_id).all()

    @staticmethod
    def get_active(session: Session, department_id: Optional[int] = None) -> List[Employee]:
        """Get active employees, optionally restricted to one department."""
        query = session.query(Employee).filter(Employee.active.is_(True))
        if department_id is not None:
            query = query.filter(Employee.department_id == department_id)
        return query.order_by(Employee.employee_id).all()

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.get(Employee, employee_id)

    @staticmethod
    def get_by_ids(session: Session, employee_ids: Iterable[int]) -> List[Employee]:
        ids = list(set(employee_ids))
        if not ids:
            return []
        return session.query(Employee).filter(Employee.employee_id.in_(ids)).all()

    @staticmethod
    def create(session: Session, employee: Employee) -> Employee:
        """Create a new employee."""
        session.add(employee)
        session.commit()
        session.refresh(employee)
        return employee

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        """Create multiple employees."""
        session.add_all(employees)
        session.commit()


class ProjectRepository:
    """Repository for project data access."""

    @staticmethod
    def get_all(session: Session) -> List[Project]:
        return session.query(Project).order_by(Project.project_id).all()

    @staticmethod
    def get_active(session: Session) -> List[Project]:
        """Get projects flagged active (any status)."""
        return session.query(Project).filter(Project.active.is_(True)).order_by(Project.project_id).all()

    @staticmethod
    def get_by_id(session: Session, project_id: int) -> Optional[Project]:
        """Get project by ID."""
        return session.get(Project, project_id)

    @staticmethod
    def create(session: Session, project: Project, department_ids: Iterable[int] = ()) -> Project:
        """Create a project and link its departments."""
        session.add(project)
        session.flush()
        ProjectRepository.link_departments(session, project.project_id, department_ids)
        session.commit()
        session.refresh(project)
        return project

    @staticmethod
    def link_departments(session: Session, project_id: int, department_ids: Iterable[int]) -> None:
        """Add project-department links without committing."""
        for department_id in dict.fromkeys(department_ids):
            session.add(ProjectDepartment(project_id=project_id, department_id=department_id))

    @staticmethod
    def bulk_create(session: Session, projects: List[Project]) -> None:
        session.add_all(projects)
        session.commit()


class LaborRequirementRepository:
    """Repository for weekly labor requirement data access."""

    @staticmethod
    def get_all(session: Session) -> List[LaborRequirement]:
        return session.query(LaborRequirement).all()

    @staticmethod
    def get_by_key(
        session: Session, project_id: int, department_id: int, week_start: date
    ) -> Optional[LaborRequirement]:
        """Get the single requirement row for a (project, department, week) key."""
        return (
            session.query(LaborRequirement)
            .filter(
                LaborRequirement.project_id == project_id,
                LaborRequirement.department_id == department_id,
                LaborRequirement.week_start == week_start,
            )
            .first()
        )

    @staticmethod
    def get_by_project(
        session: Session, project_id: int, week_start: Optional[date] = None
    ) -> List[LaborRequirement]:
        """Get requirements for a project, optionally for one week."""
        query = session.query(LaborRequirement).filter(LaborRequirement.project_id == project_id)
        if week_start is not None:
            query = query.filter(LaborRequirement.week_start == week_start)
        return query.order_by(LaborRequirement.week_start, LaborRequirement.department_id).all()

    @staticmethod
    def get_from_week(session: Session, week_start: date) -> List[LaborRequirement]:
        """Get requirements for the given week and every later week."""
        return (
            session.query(LaborRequirement)
            .filter(LaborRequirement.week_start >= week_start)
            .order_by(LaborRequirement.week_start)
            .all()
        )


class AssignmentRepository:
    """Repository for assignment data access."""

    @staticmethod
    def get_all(session: Session) -> List[Assignment]:
        """Get all assignments."""
        return session.query(Assignment).all()

    @staticmethod
    def get_by_id(session: Session, assignment_id: int) -> Optional[Assignment]:
        return session.get(Assignment, assignment_id)

    @staticmethod
    def get_by_key(
        session: Session, project_id: int, employee_id: int, week_start: date
    ) -> Optional[Assignment]:
        """Get the single assignment for a (project, employee, week) key."""
        return (
            session.query(Assignment)
            .filter(
                Assignment.project_id == project_id,
                Assignment.employee_id == employee_id,
                Assignment.week_start == week_start,
            )
            .first()
        )

    @staticmethod
    def get_by_project(
        session: Session, project_id: int, week_start: Optional[date] = None
    ) -> List[Assignment]:
        """Get assignments for a project, optionally for one week."""
        query = session.query(Assignment).filter(Assignment.project_id == project_id)
        if week_start is not None:
            query = query.filter(Assignment.week_start == week_start)
        return query.order_by(Assignment.week_start, Assignment.employee_id).all()

    @staticmethod
    def get_by_employee(
        session: Session, employee_id: int, week_start: Optional[date] = None
    ) -> List[Assignment]:
        """Get assignments for an employee, optionally for one week."""
        query = session.query(Assignment).filter(Assignment.employee_id == employee_id)
        if week_start is not None:
            query = query.filter(Assignment.week_start == week_start)
        return query.order_by(Assignment.week_start, Assignment.project_id).all()

    @staticmethod
    def get_by_week(session: Session, week_start: date) -> List[Assignment]:
        """Get all assignments for a specific week."""
        return session.query(Assignment).filter(Assignment.week_start == week_start).all()

    @staticmethod
    def get_in_range(session: Session, start: date, end: date) -> List[Assignment]:
        """Get assignments whose week falls within [start, end]."""
        return (
            session.query(Assignment)
            .filter(Assignment.week_start >= start, Assignment.week_start <= end)
            .all()
        )


class TemplateRepository:
    """Repository for project template data access."""

    @staticmethod
    def get_active(session: Session) -> List[ProjectTemplate]:
        return (
            session.query(ProjectTemplate)
            .filter(ProjectTemplate.active.is_(True))
            .order_by(ProjectTemplate.name)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, template_id: int, active_only: bool = True) -> Optional[ProjectTemplate]:
        template = session.get(ProjectTemplate, template_id)
        if template is None or (active_only and not template.active):
            return None
        return template

    @staticmethod
    def create(session: Session, template: ProjectTemplate) -> ProjectTemplate:
        session.add(template)
        session.commit()
        session.refresh(template)
        return template

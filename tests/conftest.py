"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resourceplan.domain.models import Base, Department, Employee, Project
from resourceplan.domain.repositories import ProjectRepository
from resourceplan.engine.planner import ResourcePlanner

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def seeded_session(db_session):
    """
    Session with a small organization:

    - Engineering (1): Alice (Python, SQL), Bob (Java), Dan (inactive)
    - Design (2): Carol (Figma, UX Research), 30h capacity
    - Archive (3): inactive department, no employees
    - Projects: Apollo (1, Engineering + Design), Zephyr (2, Engineering)
    """
    db_session.add_all([
        Department(department_id=1, name="Engineering"),
        Department(department_id=2, name="Design"),
        Department(department_id=3, name="Archive", active=False),
    ])
    db_session.add_all([
        Employee(employee_id=1, first_name="Alice", last_name="Smith", department_id=1,
                 job_title="Developer", capacity_hours_per_week=40, skills=["Python", "SQL"]),
        Employee(employee_id=2, first_name="Bob", last_name="Jones", department_id=1,
                 job_title="Developer", capacity_hours_per_week=40, skills=["Java"]),
        Employee(employee_id=3, first_name="Carol", last_name="White", department_id=2,
                 job_title="Designer", capacity_hours_per_week=30, skills=["Figma", "UX Research"]),
        Employee(employee_id=4, first_name="Dan", last_name="Old", department_id=1,
                 capacity_hours_per_week=40, skills=["Python"], active=False),
    ])
    db_session.commit()
    ProjectRepository.create(
        db_session,
        Project(project_id=1, name="Apollo", priority="High", status="Active", start_date=MONDAY),
        department_ids=[1, 2],
    )
    ProjectRepository.create(
        db_session,
        Project(project_id=2, name="Zephyr", priority="Medium", status="Active", start_date=MONDAY),
        department_ids=[1],
    )
    return db_session


@pytest.fixture
def planner(seeded_session):
    return ResourcePlanner(seeded_session)

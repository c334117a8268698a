"""Tests for the assignment ledger."""

from datetime import date, timedelta

import pytest

from resourceplan.domain.models import Assignment
from resourceplan.domain.repositories import AssignmentRepository
from resourceplan.errors import DuplicateAssignment, NotFound, ValidationError
from resourceplan.services.ledger import AssignmentItem, AssignmentLedger

MONDAY = date(2030, 1, 7)


@pytest.fixture
def ledger(seeded_session):
    return AssignmentLedger(seeded_session)


def test_create_normalizes_week(ledger):
    a = ledger.create(1, 1, MONDAY + timedelta(days=3), 20, note="kickoff")
    assert a.id is not None
    assert a.week_start == MONDAY
    assert a.assigned_hours == 20.0
    assert a.note == "kickoff"


def test_create_duplicate_same_week_rejected(ledger, seeded_session):
    first = ledger.create(1, 1, MONDAY, 20)
    with pytest.raises(DuplicateAssignment) as exc:
        # Sunday of the same week
        ledger.create(1, 1, MONDAY + timedelta(days=6), 5)
    assert exc.value.existing_id == first.id
    assert exc.value.week_start == MONDAY
    assert not isinstance(exc.value, ValueError)
    assert seeded_session.query(Assignment).count() == 1


def test_same_employee_other_project_or_week_allowed(ledger):
    ledger.create(1, 1, MONDAY, 20)
    ledger.create(2, 1, MONDAY, 20)
    ledger.create(1, 1, MONDAY + timedelta(days=7), 20)
    assert len(ledger.list_by_employee(1)) == 3
    assert len(ledger.list_by_employee(1, MONDAY)) == 2


def test_create_validates_hours_and_refs(ledger):
    with pytest.raises(ValidationError):
        ledger.create(1, 1, MONDAY, 169)
    with pytest.raises(ValidationError):
        ledger.create(1, 1, MONDAY, -2)
    with pytest.raises(NotFound) as exc:
        ledger.create(99, 1, MONDAY, 8)
    assert str(exc.value) == "Project with ID 99 not found"
    with pytest.raises(NotFound):
        ledger.create(1, 99, MONDAY, 8)


def test_update_and_delete(ledger):
    a = ledger.create(1, 2, MONDAY, 10)
    updated = ledger.update(a.id, 15, note="more")
    assert updated.assigned_hours == 15.0
    assert updated.week_start == MONDAY
    assert updated.note == "more"

    with pytest.raises(NotFound):
        ledger.update(12345, 5)
    with pytest.raises(ValidationError):
        ledger.update(a.id, 500)

    assert ledger.delete(a.id) is True
    assert ledger.delete(a.id) is False
    assert ledger.list_by_project(1) == []


def test_bulk_upsert_counts(ledger):
    items = [AssignmentItem(1, 10), {"employee_id": 2, "hours": 12}, (3, 8, "design")]
    result = ledger.bulk_upsert(1, MONDAY, items)
    assert (result.created, result.updated) == (3, 0)

    result = ledger.bulk_upsert(1, MONDAY + timedelta(days=2), items)
    assert (result.created, result.updated) == (0, 3)
    assert result.total == 3
    assert len(ledger.list_by_project(1, MONDAY)) == 3


def test_bulk_upsert_updates_hours(ledger):
    ledger.bulk_upsert(1, MONDAY, [(1, 10)])
    ledger.bulk_upsert(1, MONDAY, [(1, 25, "bumped")])
    rows = ledger.list_by_project(1, MONDAY)
    assert len(rows) == 1
    assert rows[0].assigned_hours == 25.0
    assert rows[0].note == "bumped"


def test_bulk_upsert_invalid_item_leaves_ledger_unchanged(ledger):
    with pytest.raises(ValidationError):
        ledger.bulk_upsert(1, MONDAY, [(1, 10), (2, 200)])
    assert ledger.list_by_project(1) == []

    with pytest.raises(NotFound):
        ledger.bulk_upsert(1, MONDAY, [(1, 10), (42, 5)])
    assert ledger.list_by_project(1) == []


def test_bulk_upsert_repeated_employee_in_batch(ledger):
    result = ledger.bulk_upsert(1, MONDAY, [(1, 10), (1, 30)])
    assert (result.created, result.updated) == (1, 1)
    rows = ledger.list_by_project(1, MONDAY)
    assert [r.assigned_hours for r in rows] == [30.0]


def _lookup_misses(monkeypatch, times=None):
    """Make the pre-insert key lookup miss, as if another writer inserted after it ran."""
    original = AssignmentRepository.get_by_key
    calls = []

    def racing_get_by_key(session, project_id, employee_id, week_start):
        calls.append(1)
        if times is None or len(calls) <= times:
            return None
        return original(session, project_id, employee_id, week_start)

    monkeypatch.setattr(AssignmentRepository, "get_by_key", staticmethod(racing_get_by_key))


def test_create_lost_race_raises_duplicate(ledger, seeded_session, monkeypatch):
    first = ledger.create(1, 1, MONDAY, 20)
    _lookup_misses(monkeypatch, times=1)

    with pytest.raises(DuplicateAssignment) as exc:
        ledger.create(1, 1, MONDAY, 5)
    assert exc.value.existing_id == first.id

    assert seeded_session.query(Assignment).count() == 1
    assert seeded_session.query(Assignment).one().assigned_hours == 20.0


def test_bulk_upsert_lost_race_raises_duplicate(ledger, seeded_session, monkeypatch):
    ledger.create(1, 1, MONDAY, 20)
    _lookup_misses(monkeypatch)

    with pytest.raises(DuplicateAssignment) as exc:
        ledger.bulk_upsert(1, MONDAY, [(2, 10), (1, 5)])
    assert exc.value.employee_id == 1

    monkeypatch.undo()
    rows = seeded_session.query(Assignment).all()
    assert [(a.employee_id, a.assigned_hours) for a in rows] == [(1, 20.0)]

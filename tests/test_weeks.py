"""Tests for week key helpers."""

from datetime import date, datetime, timedelta

import pytest

from resourceplan.errors import ValidationError
from resourceplan.weeks import add_weeks, current_week, week_count, week_end, week_start, weeks_between

MONDAY = date(2030, 1, 7)


def test_every_day_of_a_week_maps_to_its_monday():
    for offset in range(7):
        assert week_start(MONDAY + timedelta(days=offset)) == MONDAY


def test_sunday_belongs_to_the_preceding_monday():
    assert week_start(date(2030, 1, 13)) == MONDAY
    assert week_start(date(2030, 1, 14)) == date(2030, 1, 14)


def test_week_start_accepts_strings_and_datetimes():
    assert week_start("2030-01-10") == MONDAY
    assert week_start(datetime(2030, 1, 9, 17, 30)) == MONDAY


def test_week_start_rejects_garbage():
    with pytest.raises(ValidationError) as exc:
        week_start("not a date")
    assert exc.value.field == "week_start"
    with pytest.raises(ValidationError):
        week_start(None)


@pytest.mark.parametrize("text", ["nan", "NaN", "NaT"])
def test_week_start_rejects_missing_value_markers(text):
    with pytest.raises(ValidationError) as exc:
        week_start(text)
    assert exc.value.field == "week_start"


def test_week_end_is_sunday():
    assert week_end(MONDAY) == date(2030, 1, 13)


def test_weeks_between_inclusive():
    weeks = weeks_between(date(2030, 1, 9), date(2030, 1, 23))
    assert weeks == [MONDAY, date(2030, 1, 14), date(2030, 1, 21)]
    assert week_count(date(2030, 1, 9), date(2030, 1, 23)) == 3


def test_add_weeks_and_current_week():
    assert add_weeks(MONDAY, 2) == date(2030, 1, 21)
    assert current_week(date(2030, 1, 12)) == MONDAY

from datetime import date

import pytest

from todo.core.errors import ValidationError
from todo.lib.dates import parse_flexible_date, week_bounds

WEDNESDAY = date(2024, 6, 12)


def test_iso():
    assert parse_flexible_date("2024-07-01", today=WEDNESDAY) == date(2024, 7, 1)


def test_relative_words():
    assert parse_flexible_date("today", today=WEDNESDAY) == WEDNESDAY
    assert parse_flexible_date("Tomorrow", today=WEDNESDAY) == date(2024, 6, 13)
    assert parse_flexible_date("yesterday", today=WEDNESDAY) == date(2024, 6, 11)
    assert parse_flexible_date("next week", today=WEDNESDAY) == date(2024, 6, 17)


def test_weekdays():
    assert parse_flexible_date("fri", today=WEDNESDAY) == date(2024, 6, 14)
    assert parse_flexible_date("wednesday", today=WEDNESDAY) == WEDNESDAY
    assert parse_flexible_date("next wed", today=WEDNESDAY) == date(2024, 6, 19)
    assert parse_flexible_date("monday", today=WEDNESDAY) == date(2024, 6, 17)


def test_dateutil_fallback():
    assert parse_flexible_date("July 4", today=WEDNESDAY) == date(2024, 7, 4)


def test_unparseable():
    with pytest.raises(ValidationError):
        parse_flexible_date("whenever", today=WEDNESDAY)


def test_week_bounds():
    assert week_bounds(WEDNESDAY) == (date(2024, 6, 10), date(2024, 6, 16))
    assert week_bounds(date(2024, 6, 10)) == (date(2024, 6, 10), date(2024, 6, 16))
    assert week_bounds(date(2024, 6, 16)) == (date(2024, 6, 10), date(2024, 6, 16))

from datetime import UTC, date, datetime

import pytest

from todo.core.errors import DecodeError
from todo.lib.converters import format_datetime, parse_datetime, parse_optional_date, require


def test_parse_datetime_is_aware():
    parsed = parse_datetime("2024-06-10T08:30:00.000Z")
    assert parsed == datetime(2024, 6, 10, 8, 30, tzinfo=UTC)
    assert parsed.tzinfo is not None


def test_format_datetime_millis():
    assert format_datetime(datetime(2024, 6, 10, 8, 30, 0, 123456, tzinfo=UTC)) == "2024-06-10T08:30:00.123Z"


def test_parse_datetime_rejects_garbage():
    with pytest.raises(DecodeError):
        parse_datetime("yesterday")
    with pytest.raises(DecodeError):
        parse_datetime(1718000000)


def test_parse_optional_date():
    assert parse_optional_date(None) is None
    assert parse_optional_date("2024-06-10") == date(2024, 6, 10)
    with pytest.raises(DecodeError):
        parse_optional_date("10/06/2024")


def test_require():
    assert require({"a": 1}, "a", int) == 1
    with pytest.raises(DecodeError, match="missing field"):
        require({}, "a", int)

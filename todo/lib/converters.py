from datetime import UTC, date, datetime
from typing import Any

from todo.core.errors import DecodeError

ASANA_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
ASANA_DATE_FORMAT = "%Y-%m-%d"


def parse_datetime(val: Any) -> datetime:
    """Parse an Asana UTC timestamp (``2024-06-10T08:30:00.000Z``) into local time."""
    if not isinstance(val, str):
        raise DecodeError(f"expected timestamp string, got {val!r}")
    try:
        parsed = datetime.strptime(val, ASANA_DATETIME_FORMAT)
    except ValueError as e:
        raise DecodeError(f"invalid timestamp {val!r}") from e
    return parsed.replace(tzinfo=UTC).astimezone()


def format_datetime(val: datetime) -> str:
    utc = val.astimezone(UTC)
    return f"{utc.strftime('%Y-%m-%dT%H:%M:%S')}.{utc.microsecond // 1000:03d}Z"


def parse_optional_date(val: Any) -> date | None:
    if val is None:
        return None
    if not isinstance(val, str):
        raise DecodeError(f"expected date string, got {val!r}")
    try:
        return datetime.strptime(val, ASANA_DATE_FORMAT).date()
    except ValueError as e:
        raise DecodeError(f"invalid date {val!r}") from e


def format_optional_date(val: date | None) -> str | None:
    return val.strftime(ASANA_DATE_FORMAT) if val else None


def require(data: Any, key: str, kind: type | tuple[type, ...]) -> Any:
    """Pull ``key`` out of a decoded JSON object, checking its type."""
    if not isinstance(data, dict):
        raise DecodeError(f"expected object, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"missing field '{key}'")
    val = data[key]
    if not isinstance(val, kind):
        raise DecodeError(f"field '{key}' has unexpected type {type(val).__name__}")
    return val

from datetime import date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from todo.core.errors import ValidationError

from . import clock

__all__ = ["parse_flexible_date", "week_bounds"]

_WEEKDAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}
_DAY_ALIASES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}


def _next_weekday(name: str, today: date, skip_today: bool) -> date:
    days_ahead = (_WEEKDAYS[name] - today.weekday() + 7) % 7
    if days_ahead == 0 and skip_today:
        days_ahead = 7
    return today + timedelta(days=days_ahead)


def parse_flexible_date(text: str, today: date | None = None) -> date:
    """Parse a due date: ISO first ('2026-01-15'), then 'today', 'tomorrow', 'next fri', 'mon', then dateutil."""
    raw = text.strip()
    if today is None:
        today = clock.today()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass

    lower = raw.lower()
    if lower == "today":
        return today
    if lower == "tomorrow":
        return today + timedelta(days=1)
    if lower == "yesterday":
        return today - timedelta(days=1)
    if lower == "next week":
        return _next_weekday("mon", today, skip_today=True)

    skip_today = False
    if lower.startswith("next "):
        lower = lower.removeprefix("next ").strip()
        skip_today = True
    lower = _DAY_ALIASES.get(lower, lower)
    if lower in _WEEKDAYS:
        return _next_weekday(lower, today, skip_today)

    try:
        return dateutil_parser.parse(raw, default=datetime(today.year, today.month, today.day)).date()
    except (ParserError, ValueError, OverflowError) as e:
        raise ValidationError(f"could not parse date '{text}'") from e


def week_bounds(day: date) -> tuple[date, date]:
    """ISO week containing ``day``: Monday through Sunday."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)

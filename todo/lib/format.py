from collections.abc import Callable
from datetime import date

from . import ansi

__all__ = ["format_choice", "format_due", "format_status", "stat_bar", "task_or_tasks"]


def task_or_tasks(num: int) -> str:
    return "1 task" if num == 1 else f"{num} tasks"


def format_due(due: date, color: Callable[[str], str] | None = None) -> str:
    text = f"({due.isoformat()})"
    return color(text) if color else text


def format_choice(name: str, due: date | None, today: date) -> str:
    """Plain-text line for selection lists: 'Jun 10 | name'."""
    if due is None:
        due_str = "no due"
    elif due.year == today.year:
        due_str = due.strftime("%b %d")
    else:
        due_str = due.strftime("%b %d, %Y")
    return f"{due_str} | {name}"


def stat_bar(value: int | None, width: int = 9) -> str:
    if value is None:
        return ansi.dim("░" * width)
    return "█" * value + "░" * (width - value)


def format_status(symbol: str, content: str, detail: str | None = None) -> str:
    """Action confirmation line, e.g. '✔ Created task: name (due Jun 10, 2026)'."""
    if detail:
        return f"{symbol} {content} {ansi.dim(detail)}"
    return f"{symbol} {content}"

"""Status-bar output for tmux, zsh prompts and the xbar menu bar plugin."""

import dataclasses
import json
from datetime import date, datetime

from fncli import cli

from .core.errors import ValidationError
from .core.models import UserTask
from .focus import FocusDay, is_evening
from .lib.errors import echo
from .tasks import GroupedTasks, my_tasks_url

__all__ = ["FORMATS", "FocusStatus", "render_json", "render_short", "render_xbar"]

FORMATS = ("short", "json", "xbar")


@dataclasses.dataclass(frozen=True)
class FocusStatus:
    morning_pending: bool
    evening_pending: bool
    overdue: int
    due_today: int

    @classmethod
    def build(
        cls, tasks: list[UserTask], focus_day: FocusDay | None, now: datetime, today: date
    ) -> "FocusStatus":
        grouped = GroupedTasks.from_tasks(tasks, today)
        current = focus_day if focus_day and focus_day.date == today else None
        return cls(
            morning_pending=current is not None and not current.is_morning_done(),
            evening_pending=current is not None and is_evening(now) and not current.is_evening_done(),
            overdue=len(grouped.overdue),
            due_today=len(grouped.due_today),
        )

    def tokens(self) -> list[str]:
        parts: list[str] = []
        if self.morning_pending:
            parts.append("focus:am")
        if self.evening_pending:
            parts.append("focus:pm")
        if self.overdue:
            parts.append(f"!{self.overdue}")
        if self.due_today:
            parts.append(f"+{self.due_today}")
        return parts or ["✔"]

    def to_json(self) -> dict[str, object]:
        return dataclasses.asdict(self)


def render_short(status: FocusStatus) -> str:
    return " ".join(status.tokens())


def render_json(status: FocusStatus) -> str:
    return json.dumps(status.to_json())


def render_xbar(status: FocusStatus, task_list_gid: str | None) -> str:
    lines = [render_short(status), "---"]
    if status.morning_pending:
        lines.append("Morning focus not filled out | color=orange")
    if status.evening_pending:
        lines.append("Evening reflection not filled out | color=orange")
    if status.overdue:
        lines.append(f"{status.overdue} overdue | color=red")
    if status.due_today:
        lines.append(f"{status.due_today} due today | color=yellow")
    if len(lines) == 2:
        lines.append("All caught up | color=green")
    lines.append("---")
    lines.append(f"Open My Tasks | href={my_tasks_url(task_list_gid)}")
    lines.append("Refresh | refresh=true")
    return "\n".join(lines)


@cli("todo", name="status", flags={"format": ["-f", "--format"]})
def status(format: str = "short") -> None:
    """Compact status for tmux, prompts and the menu bar (short, json, xbar)"""
    from .context import load_context

    if format not in FORMATS:
        raise ValidationError(f"unknown status format: {format} (expected one of {', '.join(FORMATS)})")

    with load_context() as ctx:
        if format == "short" and not ctx.config.get("tmux.enabled", True):
            return
        current = FocusStatus.build(ctx.tasks(), ctx.focus_day(), ctx.now, ctx.today)
        if format == "json":
            echo(render_json(current))
        elif format == "xbar":
            echo(render_xbar(current, ctx.user_task_list().gid))
        else:
            echo(render_short(current))

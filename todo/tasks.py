import dataclasses
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

from fncli import cli

from .asana import Client, ensure_success, expect_data
from .core.errors import ValidationError
from .core.models import UserTask
from .focus import focus_reminder
from .lib import ansi
from .lib.background import MutationTracker
from .lib.converters import require
from .lib.dates import parse_flexible_date
from .lib.errors import echo
from .lib.format import format_choice, format_due, format_status, task_or_tasks
from .lib.fuzzy import find_in_pool
from .lib.log import log
from .lib.prompt import ask

__all__ = [
    "GroupedTasks",
    "complete_task",
    "create_task",
    "my_tasks_url",
    "render_list",
    "render_summary",
    "select_and_complete",
]

# ── domain ───────────────────────────────────────────────────────────────────


@dataclasses.dataclass(frozen=True)
class GroupedTasks:
    overdue: list[UserTask]
    due_today: list[UserTask]
    due_this_week: list[UserTask]

    @classmethod
    def from_tasks(cls, tasks: list[UserTask], today: date) -> "GroupedTasks":
        """Overdue, due today, and due within the next seven days; each sorted by due date."""
        week_end = today + timedelta(days=7)
        dated = sorted((t for t in tasks if t.due_on is not None), key=lambda t: t.due_on or today)
        return cls(
            overdue=[t for t in dated if t.due_on and t.due_on < today],
            due_today=[t for t in dated if t.due_on == today],
            due_this_week=[t for t in dated if t.due_on and today < t.due_on <= week_end],
        )


def my_tasks_url(task_list_gid: str | None) -> str:
    return f"https://app.asana.com/0/{task_list_gid or 'list'}/list"


def _task_gid(data: Any) -> str:
    return require(data, "gid", str)


def complete_task(client: Client, task_gid: str) -> None:
    ensure_success(client.mutate("PUT", f"tasks/{task_gid}", {"completed": True}))
    log(f"completed task {task_gid}")


def create_task(
    client: Client,
    workspace_gid: str,
    name: str,
    due: date | None = None,
    notes: str | None = None,
) -> str:
    """Create a task assigned to the current user. Returns its gid."""
    if not name.strip():
        raise ValidationError("task name cannot be empty")
    body: dict[str, Any] = {"name": name, "assignee": "me", "workspace": workspace_gid}
    if due:
        body["due_on"] = due.isoformat()
    if notes:
        body["notes"] = notes
    gid = expect_data(client.mutate("POST", "tasks", body), _task_gid)
    log(f"created task {gid}")
    return gid


def render_list(grouped: GroupedTasks) -> str:
    blocks: list[str] = []
    if grouped.overdue:
        lines = [f"{ansi.bold(ansi.red(task_or_tasks(len(grouped.overdue))))} {ansi.bold('overdue:')}"]
        lines += [f"- {format_due(t.due_on, ansi.red)} {t.name}" for t in grouped.overdue if t.due_on]
        blocks.append("\n".join(lines))
    if grouped.due_today:
        lines = [f"{ansi.yellow(task_or_tasks(len(grouped.due_today)))} {ansi.bold('due today:')}"]
        lines += [f"- {t.name}" for t in grouped.due_today]
        blocks.append("\n".join(lines))
    if grouped.due_this_week:
        lines = [f"{ansi.blue(task_or_tasks(len(grouped.due_this_week)))} {ansi.bold('due within a week:')}"]
        lines += [f"- {format_due(t.due_on, ansi.blue)} {t.name}" for t in grouped.due_this_week if t.due_on]
        blocks.append("\n".join(lines))
    if not blocks:
        return ansi.bold(ansi.green("Nice! Everything done for now!"))
    return "\n\n".join(blocks)


def render_summary(grouped: GroupedTasks, task_list_gid: str | None) -> str:
    overdue, today = len(grouped.overdue), len(grouped.due_today)
    if overdue and today:
        headline = ansi.bold(ansi.red(f"You have {task_or_tasks(overdue + today)} overdue or due today."))
    elif overdue:
        headline = ansi.bold(ansi.red(f"You have {task_or_tasks(overdue)} overdue."))
    elif today:
        headline = ansi.bold(ansi.yellow(f"You have {task_or_tasks(today)} due today."))
    else:
        headline = ansi.bold(ansi.green("Nice! Everything done for now!"))

    parts = [headline]
    if grouped.due_this_week:
        parts.append(ansi.blue(f"You have another {task_or_tasks(len(grouped.due_this_week))} due within a week."))
    parts.append(ansi.dim(f"({my_tasks_url(task_list_gid)})"))
    return " ".join(parts)


def _by_due(task: UserTask) -> tuple[bool, date]:
    return task.due_on is None, task.due_on or date.max


def select_and_complete(
    client: Client,
    tasks: list[UserTask],
    today: date,
    read: Callable[[str], str] = input,
) -> list[UserTask]:
    """Pick tasks by number or name until a blank line; completions run in the background."""
    remaining = sorted(tasks, key=_by_due)
    completed: list[UserTask] = []
    with MutationTracker(name="todo-complete") as tracker:
        while remaining:
            for i, task in enumerate(remaining, 1):
                echo(f"{ansi.dim(f'{i:>3}.')} {format_choice(task.name, task.due_on, today)}")
            ref = read("complete (blank to finish): ").strip()
            if not ref:
                break
            task = find_in_pool(ref, remaining)
            if task is None:
                echo(ansi.red(f"no task matches '{ref}'"))
                continue
            remaining.remove(task)
            completed.append(task)
            tracker.submit(complete_task, client, task.gid)
            echo(format_status(ansi.green("✔"), task.name))
        if not remaining:
            echo(ansi.green("All tasks completed!"))
        if tracker.pending():
            echo(ansi.dim("Waiting for tasks to complete..."))
    return completed


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("todo", name="summary")
def summary() -> None:
    """Counts of overdue and upcoming tasks, plus a focus reminder"""
    from .context import load_context

    with load_context() as ctx:
        grouped = GroupedTasks.from_tasks(ctx.tasks(), ctx.today)
        echo(render_summary(grouped, ctx.user_task_list().gid))

        focus_day = ctx.focus_day()
        reminder = focus_reminder(focus_day, ctx.now, ctx.today) if focus_day else None
        if reminder:
            echo(f"{ansi.yellow(reminder)} {ansi.dim('(run `todo focus` to fill out focus data)')}")


@cli("todo", name="list")
def list_tasks() -> None:
    """Tasks overdue, due today, and due within a week"""
    from .context import load_context

    with load_context() as ctx:
        echo(render_list(GroupedTasks.from_tasks(ctx.tasks(), ctx.today)))


@cli("todo", name="add", flags={"due": ["-d", "--due"], "description": ["--description"]})
def add(*name: str, due: str | None = None, description: str | None = None) -> None:
    """Create a task (prompts for details when no name is given)"""
    from .context import load_context

    with load_context() as ctx:
        if ctx.use_cache:
            raise ValidationError("cannot add tasks in cache-only mode, run without --use-cache")
        interactive = not name
        task_name = " ".join(name) if name else ask("Task name")

        due_text = due if due is not None else (ask("Due date (optional, e.g. tomorrow, next fri)") if interactive else "")
        due_date = parse_flexible_date(due_text, today=ctx.today) if due_text.strip() else None

        notes = description if description is not None else (ask("Description (optional)") if interactive else "")

        create_task(ctx.client, ctx.workspace_gid(), task_name, due_date, notes.strip() or None)
        detail = f"(due {due_date.strftime('%b %d, %Y')})" if due_date else None
        echo(format_status(ansi.bold(ansi.green("✔")), f"Created task: {ansi.cyan(task_name)}", detail))


@cli("todo", name="complete")
def complete() -> None:
    """Mark tasks complete, one selection at a time"""
    from .context import load_context

    with load_context() as ctx:
        if ctx.use_cache:
            raise ValidationError("cannot complete tasks in cache-only mode, run without --use-cache")
        tasks = ctx.tasks()
        if not tasks:
            echo(ansi.green("No incomplete tasks found!"))
            return
        done = {t.gid for t in select_and_complete(ctx.client, tasks, ctx.today)}
        ctx.cache.tasks = [t for t in tasks if t.gid not in done]

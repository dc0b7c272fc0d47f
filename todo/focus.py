"""Daily focus ritual kept as Asana tasks.

A focus project holds one section per ISO week, named
``Daily Focuses (YYYY-MM-DD to YYYY-MM-DD)``, and inside it one task per day,
named ``Daily Focus for <Weekday> (YYYY-MM-DD)``. Seven numeric custom fields on
the day task carry the statistics; the task notes carry the diary.
"""

import dataclasses
import re
from collections.abc import Callable, Iterator, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Self

from fncli import cli

from .asana import Client, ensure_success, expect_data
from .core.errors import DecodeError, UnknownStatError, ValidationError
from .core.models import CustomField, FocusTask, Section, Subtask
from .lib import ansi
from .lib.background import MutationTracker
from .lib.dates import parse_flexible_date, week_bounds
from .lib.errors import echo
from .lib.format import stat_bar
from .lib.log import log, warn
from .lib.prompt import ask, ask_digit

__all__ = [
    "DEFAULT_STAT_FIELDS",
    "START_HOUR_FOR_EOD",
    "FocusDay",
    "FocusWeek",
    "StatFields",
    "StatKind",
    "Stats",
    "create_subtask",
    "focus_reminder",
    "is_evening",
    "load_days",
    "load_subtasks",
    "load_weeks",
    "resolve_focus_day",
    "stats_to_prompt",
    "sync_focus_day",
]

FOCUS_WEEK_PATTERN = re.compile(
    r"^Daily Focuses \((?P<start>\d{4}-\d{2}-\d{2}) to (?P<end>\d{4}-\d{2}-\d{2})\)$"
)
FOCUS_DAY_PATTERN = re.compile(r"^Daily Focus for \w+ \((?P<date>\d{4}-\d{2}-\d{2})\)$")
WEEK_PREFIX = "Daily Focuses"
DAY_PREFIX = "Daily Focus for"

START_HOUR_FOR_EOD = 20


class StatKind(Enum):
    SLEEP = "sleep"
    ENERGY = "energy"
    FLOW = "flow"
    HYDRATION = "hydration"
    HEALTH = "health"
    SATISFACTION = "satisfaction"
    STRESS = "stress"


MORNING_STATS = (StatKind.SLEEP, StatKind.ENERGY)
EVENING_STATS = tuple(k for k in StatKind if k not in MORNING_STATS)

DEFAULT_STAT_FIELDS: dict[StatKind, str] = {
    StatKind.SLEEP: "1204172638538713",
    StatKind.ENERGY: "1204172638540767",
    StatKind.FLOW: "1204172638540769",
    StatKind.HYDRATION: "1204172638540771",
    StatKind.HEALTH: "1204172638540773",
    StatKind.SATISFACTION: "1204172638540775",
    StatKind.STRESS: "1204172638540777",
}


class StatFields:
    """Bijection between stat kinds and the custom field gids that store them."""

    def __init__(self, mapping: Mapping[StatKind, str] | None = None) -> None:
        fields = dict(DEFAULT_STAT_FIELDS)
        if mapping:
            fields.update(mapping)
        if len(set(fields.values())) != len(fields):
            raise ValidationError("each stat must map to a distinct custom field gid")
        self._by_kind = fields
        self._by_gid = {gid: kind for kind, gid in fields.items()}

    @classmethod
    def from_config(cls, overrides: Mapping[str, str]) -> Self:
        mapping: dict[StatKind, str] = {}
        for name, gid in overrides.items():
            try:
                mapping[StatKind(name)] = gid
            except ValueError:
                raise ValidationError(f"unknown stat in focus.stat_fields: {name}") from None
        return cls(mapping)

    def kind_for(self, gid: str) -> StatKind:
        kind = self._by_gid.get(gid)
        if kind is None:
            raise UnknownStatError(gid)
        return kind

    def gid_for(self, kind: StatKind) -> str:
        return self._by_kind[kind]


@dataclasses.dataclass(frozen=True)
class Stats:
    sleep: int | None = None
    energy: int | None = None
    flow: int | None = None
    hydration: int | None = None
    health: int | None = None
    satisfaction: int | None = None
    stress: int | None = None

    def get(self, kind: StatKind) -> int | None:
        return getattr(self, kind.value)

    def with_value(self, kind: StatKind, value: int | None) -> "Stats":
        if value is not None and not 0 <= value <= 9:
            raise ValidationError(f"{kind.value} must be between 0 and 9, got {value}")
        return dataclasses.replace(self, **{kind.value: value})

    def items(self) -> Iterator[tuple[StatKind, int | None]]:
        for kind in StatKind:
            yield kind, self.get(kind)

    @classmethod
    def decode(cls, custom_fields: list[CustomField] | None, stat_fields: StatFields) -> "Stats":
        """Every field must be a known stat. A missing field list means nothing is set yet."""
        stats = cls()
        for field in custom_fields or []:
            stats = dataclasses.replace(stats, **{stat_fields.kind_for(field.gid).value: field.number_value})
        return stats

    def encode(self, stat_fields: StatFields) -> dict[str, int]:
        return {stat_fields.gid_for(kind): value for kind, value in self.items() if value is not None}

    def to_json(self) -> dict[str, int | None]:
        return {kind.value: value for kind, value in self.items()}

    @classmethod
    def from_json(cls, data: Any) -> "Stats":
        if not isinstance(data, dict):
            raise DecodeError("stats must be an object")
        values: dict[str, int | None] = {}
        for kind in StatKind:
            val = data.get(kind.value)
            if val is not None and (isinstance(val, bool) or not isinstance(val, int)):
                raise DecodeError(f"stat '{kind.value}' must be an integer")
            values[kind.value] = val
        return cls(**values)


@dataclasses.dataclass(frozen=True)
class FocusWeek:
    section: Section
    start: date
    end: date

    @classmethod
    def parse(cls, section: Section) -> "FocusWeek":
        """Raises ValueError when the section name is not a focus week."""
        match = FOCUS_WEEK_PATTERN.match(section.name)
        if not match:
            raise ValueError(f"not a focus week: {section.name!r}")
        return cls(
            section=section,
            start=date.fromisoformat(match["start"]),
            end=date.fromisoformat(match["end"]),
        )

    @staticmethod
    def section_name(day: date) -> str:
        monday, sunday = week_bounds(day)
        return f"Daily Focuses ({monday.isoformat()} to {sunday.isoformat()})"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"Focus Week ({self.start.isoformat()} to {self.end.isoformat()})"


@dataclasses.dataclass(frozen=True)
class FocusDay:
    task: FocusTask
    date: date
    stats: Stats
    diary: str
    subtasks: tuple[Subtask, ...] | None = None

    @classmethod
    def parse(cls, task: FocusTask, stat_fields: StatFields) -> "FocusDay":
        """ValueError for a name that is not a focus day; DecodeError for bad stats."""
        match = FOCUS_DAY_PATTERN.match(task.name)
        if not match:
            raise ValueError(f"not a focus day: {task.name!r}")
        return cls(
            task=task,
            date=date.fromisoformat(match["date"]),
            stats=Stats.decode(task.custom_fields, stat_fields),
            diary=task.notes,
        )

    @staticmethod
    def task_name(day: date) -> str:
        return f"Daily Focus for {day.strftime('%a')} ({day.isoformat()})"

    def is_morning_done(self) -> bool:
        return all(self.stats.get(k) is not None for k in MORNING_STATS)

    def is_evening_done(self) -> bool:
        return all(self.stats.get(k) is not None for k in EVENING_STATS)

    def with_subtasks(self, subtasks: list[Subtask]) -> "FocusDay":
        return dataclasses.replace(self, subtasks=tuple(subtasks))

    def render(self) -> str:
        weekday = ansi.blue(self.date.strftime("%A"))
        lines = [
            f"🧠 {ansi.bold(f'Focus Day: {weekday}')} {ansi.dim(f'({self.date.isoformat()})')}",
            "",
            self.diary if self.diary else ansi.dim("no diary entry yet."),
            "",
            ansi.bold(ansi.cyan("❤️ Statistics")),
        ]
        for kind, value in self.stats.items():
            label = f"{kind.value}:"
            line = f"{ansi.bold(f'{label:<13}')} {stat_bar(value)} {'-' if value is None else value}"
            lines.append(f"   {line if value is not None else ansi.dim(line)}")
        if self.subtasks:
            lines.extend(["", ansi.bold(ansi.red("Tasks"))])
            for sub in self.subtasks:
                mark = ansi.green("✓") if sub.completed else "□"
                lines.append(f"   {mark} {sub.name}")
        return "\n".join(lines)

    def to_json(self) -> dict[str, Any]:
        return {
            "task": self.task.to_json(),
            "date": self.date.isoformat(),
            "stats": self.stats.to_json(),
            "diary": self.diary,
            "subtasks": [s.to_json() for s in self.subtasks] if self.subtasks is not None else None,
        }

    @classmethod
    def from_json(cls, data: Any) -> "FocusDay":
        if not isinstance(data, dict):
            raise DecodeError("focus day must be an object")
        try:
            day = date.fromisoformat(data.get("date") or "")
        except (TypeError, ValueError) as e:
            raise DecodeError(f"invalid focus day date: {data.get('date')!r}") from e
        raw_subtasks = data.get("subtasks")
        if raw_subtasks is not None and not isinstance(raw_subtasks, list):
            raise DecodeError("focus day subtasks must be a list")
        diary = data.get("diary", "")
        if not isinstance(diary, str):
            raise DecodeError("focus day diary must be a string")
        return cls(
            task=FocusTask.decode(data.get("task")),
            date=day,
            stats=Stats.from_json(data.get("stats") or {}),
            diary=diary,
            subtasks=tuple(Subtask.decode(s) for s in raw_subtasks) if raw_subtasks is not None else None,
        )

    def __str__(self) -> str:
        stats = ", ".join(f"{k.value}={'-' if v is None else v}" for k, v in self.stats.items())
        return f"Focus Day ({self.date.isoformat()}) (stats: {stats})"


# ── resolution ───────────────────────────────────────────────────────────────


def load_weeks(client: Client, project_gid: str) -> list[FocusWeek]:
    """Focus weeks in the project, earliest first. Unparseable sections are skipped."""
    weeks: list[FocusWeek] = []
    for section in client.fetch(Section, project_gid):
        if not section.name.startswith(WEEK_PREFIX):
            continue
        try:
            weeks.append(FocusWeek.parse(section))
        except ValueError as e:
            warn(f"could not parse focus section name: {e}")
    weeks.sort(key=lambda w: w.start)
    return weeks


def load_days(client: Client, week: FocusWeek, stat_fields: StatFields) -> list[FocusDay]:
    """Focus days in a week, earliest first. Unparseable names are skipped; unknown stats are not."""
    days: list[FocusDay] = []
    for task in client.fetch(FocusTask, week.section.gid):
        if not task.name.startswith(DAY_PREFIX):
            continue
        try:
            days.append(FocusDay.parse(task, stat_fields))
        except ValueError as e:
            warn(f"could not parse focus task name: {e}")
    days.sort(key=lambda d: d.date)
    return days


def _create_week(client: Client, project_gid: str, day: date, before: FocusWeek | None) -> FocusWeek:
    body: dict[str, Any] = {"name": FocusWeek.section_name(day)}
    if before is not None:
        body["insert_before"] = before.section.gid
    response = client.mutate("POST", f"projects/{project_gid}/sections", body)
    section = expect_data(response, Section.decode)
    try:
        week = FocusWeek.parse(section)
    except ValueError as e:
        raise DecodeError(f"created focus week has unexpected name: {section.name!r}") from e
    log(f"created {week}")
    return week


def _create_day(
    client: Client, project_gid: str, week: FocusWeek, day: date, stat_fields: StatFields
) -> FocusDay:
    body = {
        "name": FocusDay.task_name(day),
        "projects": [project_gid],
        "memberships": [{"project": project_gid, "section": week.section.gid}],
    }
    task = expect_data(client.mutate("POST", "tasks", body), FocusTask.decode)
    try:
        focus_day = FocusDay.parse(task, stat_fields)
    except ValueError as e:
        raise DecodeError(f"created focus day has unexpected name: {task.name!r}") from e
    log(f"created {focus_day}")
    return focus_day


def _order_after(client: Client, week: FocusWeek, created: FocusDay, previous: FocusDay) -> None:
    response = client.mutate(
        "POST",
        f"sections/{week.section.gid}/addTask",
        {"task": created.task.gid, "insert_after": previous.task.gid},
    )
    ensure_success(response)


def resolve_focus_day(
    client: Client,
    day: date,
    project_gid: str,
    stat_fields: StatFields | None = None,
) -> FocusDay:
    """Find the focus day for ``day``, creating its week and/or day task when missing."""
    stat_fields = stat_fields or StatFields()

    weeks = load_weeks(client, project_gid)
    week = next((w for w in weeks if w.contains(day)), None)
    if week is None:
        log(f"no focus week contains {day}, creating it")
        monday, _ = week_bounds(day)
        previous = max((w for w in weeks if w.start < monday), key=lambda w: w.start, default=None)
        week = _create_week(client, project_gid, day, previous)

    days = load_days(client, week, stat_fields)
    found = next((d for d in days if d.date == day), None)
    if found is not None:
        return found

    log(f"no focus day for {day}, creating it")
    created = _create_day(client, project_gid, week, day, stat_fields)
    earlier = [d for d in days if d.date < day]
    if earlier:
        _order_after(client, week, created, earlier[-1])
    return created


def load_subtasks(client: Client, focus_day: FocusDay) -> FocusDay:
    return focus_day.with_subtasks(client.fetch(Subtask, focus_day.task.gid))


def sync_focus_day(
    client: Client,
    focus_day: FocusDay,
    stats: Stats,
    diary: str,
    stat_fields: StatFields | None = None,
) -> bool:
    """Push new stats and diary. Returns False without a request when nothing changed."""
    if stats == focus_day.stats and diary == focus_day.diary:
        log("no focus changes to sync")
        return False
    stat_fields = stat_fields or StatFields()
    body = {"notes": diary, "custom_fields": stats.encode(stat_fields)}
    ensure_success(client.mutate("PUT", f"tasks/{focus_day.task.gid}", body))
    log(f"synced focus day {focus_day.date}")
    return True


def create_subtask(client: Client, task_gid: str, name: str, due: date) -> None:
    body = {"name": name, "assignee": "me", "due_on": due.isoformat()}
    ensure_success(client.mutate("POST", f"tasks/{task_gid}/subtasks", body))
    log(f"created subtask {name!r}")


# ── ritual ───────────────────────────────────────────────────────────────────


def is_evening(now: datetime) -> bool:
    return now.hour >= START_HOUR_FOR_EOD


def stats_to_prompt(focus_day: FocusDay, now: datetime, today: date, force_eod: bool = False) -> list[StatKind]:
    """Morning stats whenever unset; the rest once the day is over, or when forced."""
    evening_open = force_eod or focus_day.date < today or is_evening(now)
    return [
        kind
        for kind, value in focus_day.stats.items()
        if value is None and (kind in MORNING_STATS or evening_open)
    ]


def focus_reminder(focus_day: FocusDay, now: datetime, today: date) -> str | None:
    if focus_day.date != today:
        return None
    missing_morning = not focus_day.is_morning_done()
    missing_evening = is_evening(now) and not focus_day.is_evening_done()
    if missing_morning and missing_evening:
        return "Don't forget your focus for the day!"
    if missing_morning:
        return "Time for your morning reflection."
    if missing_evening:
        return "Time for your evening reflection."
    return None


def run_ritual(
    client: Client,
    focus_day: FocusDay,
    now: datetime,
    today: date,
    force_eod: bool = False,
    stat_fields: StatFields | None = None,
    read: Callable[[str], str] = input,
) -> FocusDay:
    """Prompt for stats, diary and today's tasks. Remote writes run in the background."""
    stat_fields = stat_fields or StatFields()
    stats = focus_day.stats
    pending = stats_to_prompt(focus_day, now, today, force_eod)
    if not pending:
        echo(ansi.bold(ansi.green("All caught up on stats!")))
    else:
        echo(ansi.bold(ansi.cyan("Time to fill out some stats!")))
        for kind in pending:
            stats = stats.with_value(kind, ask_digit(kind.value, read=read))
    echo()

    echo(ansi.bold(ansi.purple("Have anything to say?")))
    diary = ask("diary", initial=focus_day.diary, read=read)
    echo()

    with MutationTracker(name="todo-focus") as tracker:
        tracker.submit(sync_focus_day, client, focus_day, stats, diary, stat_fields)

        focus_day = load_subtasks(client, focus_day)

        names = [sub.name for sub in focus_day.subtasks or ()]
        while True:
            echo(ansi.bold(ansi.red("Any tasks to do today?")))
            for task_name in names:
                echo(f"- {task_name}")
            name = read("new task: ").strip()
            if not name:
                break
            tracker.submit(create_subtask, client, focus_day.task.gid, name, today)
            names.append(name)

        if tracker.pending():
            echo(ansi.dim("Waiting for focus data to sync..."))

    return dataclasses.replace(focus_day, stats=stats, diary=diary)


# ── cli ──────────────────────────────────────────────────────────────────────


def _target_date(date_str: str | None, today: date) -> date:
    return parse_flexible_date(date_str, today=today) if date_str else today


@cli("todo focus", name="run", default=True, flags={"date": ["-d", "--date"], "force_eod": ["--force-eod"]})
def run(date: str | None = None, force_eod: bool = False) -> None:
    """Fill out stats, diary and tasks for a focus day"""
    from .context import load_context

    with load_context() as ctx:
        project_gid = ctx.require_focus_project()
        day = _target_date(date, ctx.today)
        echo(ansi.dim("Loading focus day..."))
        focus_day = resolve_focus_day(ctx.client, day, project_gid, ctx.stat_fields)
        updated = run_ritual(ctx.client, focus_day, ctx.now, ctx.today, force_eod, ctx.stat_fields)
        if day == ctx.today:
            ctx.cache.focus_day = updated


@cli("todo focus", name="overview", flags={"date": ["-d", "--date"]})
def overview(date: str | None = None) -> None:
    """Show a focus day"""
    from .context import load_context

    with load_context() as ctx:
        project_gid = ctx.require_focus_project()
        day = _target_date(date, ctx.today)
        if ctx.use_cache and ctx.cache.focus_day and ctx.cache.focus_day.date == day:
            focus_day = ctx.cache.focus_day
        else:
            focus_day = resolve_focus_day(ctx.client, day, project_gid, ctx.stat_fields)
        echo(focus_day.render())

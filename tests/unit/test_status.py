import json
from datetime import UTC, date, datetime

from todo.core.models import FocusTask, UserTask
from todo.focus import FocusDay, Stats
from todo.status import FocusStatus, render_json, render_short, render_xbar

TODAY = date(2024, 6, 12)
MORNING = datetime(2024, 6, 12, 9)
EVENING = datetime(2024, 6, 12, 21)


def task(due: date) -> UserTask:
    return UserTask("1", datetime(2024, 6, 1, tzinfo=UTC), due, "x")


def focus_day(**stats: int) -> FocusDay:
    return FocusDay(FocusTask("t", "Daily Focus for Wed (2024-06-12)", ""), TODAY, Stats(**stats), "")


def test_all_clear():
    status = FocusStatus.build([], None, MORNING, TODAY)
    assert render_short(status) == "✔"


def test_short_tokens():
    status = FocusStatus.build([task(date(2024, 6, 1)), task(TODAY), task(TODAY)], focus_day(), MORNING, TODAY)
    assert render_short(status) == "focus:am !1 +2"


def test_evening_pending_only_after_eight():
    done_morning = focus_day(sleep=7, energy=7)
    assert render_short(FocusStatus.build([], done_morning, MORNING, TODAY)) == "✔"
    assert render_short(FocusStatus.build([], done_morning, EVENING, TODAY)) == "focus:pm"


def test_stale_focus_day_is_ignored():
    yesterday = FocusDay(FocusTask("t", "n", ""), date(2024, 6, 11), Stats(), "")
    assert render_short(FocusStatus.build([], yesterday, MORNING, TODAY)) == "✔"


def test_json():
    status = FocusStatus.build([task(TODAY)], focus_day(), MORNING, TODAY)
    assert json.loads(render_json(status)) == {
        "morning_pending": True,
        "evening_pending": False,
        "overdue": 0,
        "due_today": 1,
    }


def test_xbar():
    status = FocusStatus.build([task(date(2024, 6, 1))], None, MORNING, TODAY)
    lines = render_xbar(status, "utl1").splitlines()
    assert lines[0] == "!1"
    assert lines[1] == "---"
    assert "1 overdue | color=red" in lines
    assert "Open My Tasks | href=https://app.asana.com/0/utl1/list" in lines

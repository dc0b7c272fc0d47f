from datetime import date

import pytest

from todo.core.errors import DecodeError
from todo.core.models import (
    RESOURCES,
    CustomField,
    FocusTask,
    Project,
    Section,
    Subtask,
    UserTask,
    UserTaskList,
    UserTaskListRequest,
    Workspace,
)


def test_user_task_list_path_and_params():
    req = UserTaskListRequest(workspace_gid="ws1")
    assert UserTaskList.segments(req) == ["users", "me", "user_task_list"]
    assert UserTaskList.params(req) == [("workspace", "ws1")]
    assert UserTaskList.many is False


def test_user_tasks_only_incomplete():
    assert UserTask.segments("utl1") == ["user_task_lists", "utl1", "tasks"]
    assert UserTask.params("utl1") == [("completed_since", "now")]


def test_fields_track_dataclass_fields():
    for resource in RESOURCES:
        names = {f.split(".")[1] for f in resource.fields()}
        assert names <= set(resource.__dataclass_fields__), resource


def test_user_task_decode():
    task = UserTask.decode(
        {"gid": "1", "name": "pay rent", "due_on": "2024-06-10", "created_at": "2024-06-01T08:00:00.000Z"}
    )
    assert task.due_on == date(2024, 6, 10)
    assert task.created_at.tzinfo is not None


def test_user_task_decode_without_due():
    task = UserTask.decode({"gid": "1", "name": "x", "due_on": None, "created_at": "2024-06-01T08:00:00.000Z"})
    assert task.due_on is None


def test_user_task_json_roundtrip():
    task = UserTask.decode(
        {"gid": "1", "name": "pay rent", "due_on": "2024-06-10", "created_at": "2024-06-01T08:00:00.123Z"}
    )
    assert UserTask.decode(task.to_json()) == task


def test_decode_missing_field():
    with pytest.raises(DecodeError, match="missing field 'name'"):
        Section.decode({"gid": "1"})


def test_decode_wrong_type():
    with pytest.raises(DecodeError):
        Workspace.decode({"gid": 1, "name": "x"})


def test_decode_non_object():
    with pytest.raises(DecodeError):
        Project.decode(["not", "an", "object"])


def test_custom_field_accepts_whole_floats():
    assert CustomField.decode({"gid": "f", "number_value": 7.0}).number_value == 7


def test_custom_field_rejects_fractions():
    with pytest.raises(DecodeError):
        CustomField.decode({"gid": "f", "number_value": 7.5})


def test_custom_field_null_value():
    assert CustomField.decode({"gid": "f", "number_value": None}).number_value is None


def test_focus_task_missing_custom_fields():
    task = FocusTask.decode({"gid": "1", "name": "Daily Focus for Mon (2024-06-10)", "notes": None})
    assert task.custom_fields is None
    assert task.notes == ""


def test_focus_task_bad_custom_fields():
    with pytest.raises(DecodeError):
        FocusTask.decode({"gid": "1", "name": "x", "custom_fields": "nope"})


def test_subtask_decode():
    sub = Subtask.decode({"gid": "9", "name": "stretch", "completed": True})
    assert sub.completed is True
    assert Subtask.segments("5") == ["tasks", "5", "subtasks"]

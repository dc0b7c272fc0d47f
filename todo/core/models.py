"""Asana entities mirrored locally, each bound to the REST resource it is fetched from.

Every entity is a Resource Descriptor: ``segments(param)`` gives the path under the
API root, ``fields()`` the ``opt_fields`` selectors (kept in lock-step with the
dataclass fields), ``params(param)`` any extra query pairs, and ``decode`` turns
one JSON object from the ``data`` envelope into the entity.
"""

import dataclasses
from datetime import date, datetime
from typing import Any, ClassVar, Self

from todo.core.errors import DecodeError
from todo.lib.converters import (
    format_datetime,
    format_optional_date,
    parse_datetime,
    parse_optional_date,
    require,
)


@dataclasses.dataclass(frozen=True)
class Workspace:
    gid: str
    name: str

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: None = None) -> list[str]:
        return ["workspaces"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid", "this.name"]

    @classmethod
    def params(cls, param: None = None) -> list[tuple[str, str]]:
        return []

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(gid=require(data, "gid", str), name=require(data, "name", str))

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid, "name": self.name}


@dataclasses.dataclass(frozen=True)
class Project:
    gid: str
    name: str

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: str) -> list[str]:
        return ["workspaces", param, "projects"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid", "this.name"]

    @classmethod
    def params(cls, param: str) -> list[tuple[str, str]]:
        return [("limit", "100"), ("archived", "false")]

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(gid=require(data, "gid", str), name=require(data, "name", str))

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid, "name": self.name}


@dataclasses.dataclass(frozen=True)
class UserTaskListRequest:
    workspace_gid: str
    user_gid: str = "me"


@dataclasses.dataclass(frozen=True)
class UserTaskList:
    gid: str

    many: ClassVar[bool] = False

    @classmethod
    def segments(cls, param: UserTaskListRequest) -> list[str]:
        return ["users", param.user_gid, "user_task_list"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid"]

    @classmethod
    def params(cls, param: UserTaskListRequest) -> list[tuple[str, str]]:
        return [("workspace", param.workspace_gid)]

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(gid=require(data, "gid", str))

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid}


@dataclasses.dataclass(frozen=True)
class UserTask:
    gid: str
    created_at: datetime
    due_on: date | None
    name: str

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: str) -> list[str]:
        return ["user_task_lists", param, "tasks"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid", "this.created_at", "this.due_on", "this.name"]

    @classmethod
    def params(cls, param: str) -> list[tuple[str, str]]:
        return [("completed_since", "now")]

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(
            gid=require(data, "gid", str),
            created_at=parse_datetime(require(data, "created_at", str)),
            due_on=parse_optional_date(data.get("due_on")),
            name=require(data, "name", str),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "gid": self.gid,
            "created_at": format_datetime(self.created_at),
            "due_on": format_optional_date(self.due_on),
            "name": self.name,
        }


@dataclasses.dataclass(frozen=True)
class Section:
    gid: str
    name: str

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: str) -> list[str]:
        return ["projects", param, "sections"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid", "this.name"]

    @classmethod
    def params(cls, param: str) -> list[tuple[str, str]]:
        return []

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(gid=require(data, "gid", str), name=require(data, "name", str))

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid, "name": self.name}


def _parse_number(val: Any) -> int | None:
    if val is None:
        return None
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise DecodeError(f"expected number, got {val!r}")
    if isinstance(val, float) and not val.is_integer():
        raise DecodeError(f"expected whole number, got {val!r}")
    return int(val)


@dataclasses.dataclass(frozen=True)
class CustomField:
    gid: str
    number_value: int | None

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(gid=require(data, "gid", str), number_value=_parse_number(data.get("number_value")))

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid, "number_value": self.number_value}


@dataclasses.dataclass(frozen=True)
class FocusTask:
    gid: str
    name: str
    notes: str
    custom_fields: list[CustomField] | None = dataclasses.field(default=None, hash=False)

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: str) -> list[str]:
        return ["sections", param, "tasks"]

    @classmethod
    def fields(cls) -> list[str]:
        return [
            "this.gid",
            "this.name",
            "this.notes",
            "this.custom_fields",
            "this.custom_fields.gid",
            "this.custom_fields.number_value",
        ]

    @classmethod
    def params(cls, param: str) -> list[tuple[str, str]]:
        return []

    @classmethod
    def decode(cls, data: Any) -> Self:
        raw_fields = data.get("custom_fields") if isinstance(data, dict) else None
        if raw_fields is not None and not isinstance(raw_fields, list):
            raise DecodeError("field 'custom_fields' has unexpected type")
        return cls(
            gid=require(data, "gid", str),
            name=require(data, "name", str),
            notes=data.get("notes") or "",
            custom_fields=[CustomField.decode(f) for f in raw_fields] if raw_fields is not None else None,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "gid": self.gid,
            "name": self.name,
            "notes": self.notes,
            "custom_fields": (
                [f.to_json() for f in self.custom_fields] if self.custom_fields is not None else None
            ),
        }


@dataclasses.dataclass(frozen=True)
class Subtask:
    gid: str
    name: str
    completed: bool

    many: ClassVar[bool] = True

    @classmethod
    def segments(cls, param: str) -> list[str]:
        return ["tasks", param, "subtasks"]

    @classmethod
    def fields(cls) -> list[str]:
        return ["this.gid", "this.name", "this.completed"]

    @classmethod
    def params(cls, param: str) -> list[tuple[str, str]]:
        return []

    @classmethod
    def decode(cls, data: Any) -> Self:
        return cls(
            gid=require(data, "gid", str),
            name=require(data, "name", str),
            completed=require(data, "completed", bool),
        )

    def to_json(self) -> dict[str, Any]:
        return {"gid": self.gid, "name": self.name, "completed": self.completed}


RESOURCES: tuple[type, ...] = (Workspace, Project, UserTaskList, UserTask, Section, FocusTask, Subtask)

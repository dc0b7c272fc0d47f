import dataclasses
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from . import config
from .auth import Credentials, credentials_from_json, credentials_to_json
from .core.errors import DecodeError
from .core.models import UserTask, UserTaskList
from .focus import FocusDay
from .lib.converters import format_datetime, parse_datetime
from .lib.log import log, warn

__all__ = ["STALE_AFTER", "Cache", "load", "save", "stale_warning"]

STALE_AFTER = timedelta(minutes=3)


@dataclasses.dataclass
class Cache:
    creds: Credentials | None = None
    user_task_list: UserTaskList | None = None
    tasks: list[UserTask] | None = None
    focus_day: FocusDay | None = None
    last_updated: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "creds": credentials_to_json(self.creds) if self.creds else None,
            "user_task_list": self.user_task_list.to_json() if self.user_task_list else None,
            "tasks": [t.to_json() for t in self.tasks] if self.tasks is not None else None,
            "focus_day": self.focus_day.to_json() if self.focus_day else None,
            "last_updated": format_datetime(self.last_updated) if self.last_updated else None,
        }

    @classmethod
    def from_json(cls, data: Any) -> "Cache":
        if not isinstance(data, dict):
            raise DecodeError("cache must be a JSON object")
        tasks = data.get("tasks")
        if tasks is not None and not isinstance(tasks, list):
            raise DecodeError("cached tasks must be a list")
        return cls(
            creds=credentials_from_json(data["creds"]) if data.get("creds") else None,
            user_task_list=UserTaskList.decode(data["user_task_list"]) if data.get("user_task_list") else None,
            tasks=[UserTask.decode(t) for t in tasks] if tasks is not None else None,
            focus_day=FocusDay.from_json(data["focus_day"]) if data.get("focus_day") else None,
            last_updated=parse_datetime(data["last_updated"]) if data.get("last_updated") else None,
        )


def _cache_path(path: Path | None) -> Path:
    return path if path else config.CACHE_PATH


def save(cache: Cache, path: Path | None = None) -> None:
    cache_path = _cache_path(path)
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    cache_path.write_text(json.dumps(cache.to_json(), indent=2))


def load(path: Path | None = None) -> Cache:
    """Load the snapshot, creating it when missing and wiping it when unreadable."""
    cache_path = _cache_path(path)
    if not cache_path.exists():
        log(f"no cache at {cache_path}, creating an empty one")
        save(Cache(), cache_path)
        return Cache()
    try:
        return Cache.from_json(json.loads(cache_path.read_text()))
    except (ValueError, DecodeError) as e:
        warn(f"could not decode cache at {cache_path}, wiping it: {e}")
        save(Cache(), cache_path)
        return Cache()


def stale_warning(cache: Cache, now: datetime) -> str | None:
    if cache.last_updated is None:
        return "Warning: cache has never been updated, is `todo update` running in the background?"
    if now.astimezone() - cache.last_updated >= STALE_AFTER:
        return "Warning: cache has not been updated in more than 3 minutes, is `todo update` running in the background?"
    return None

from pathlib import Path
from typing import Any

import yaml

TODO_DIR = Path.home() / ".todo"
CONFIG_PATH = TODO_DIR / "config.yaml"
CACHE_PATH = TODO_DIR / "cache.json"
LOCK_PATH = TODO_DIR / "auth.lock"
LOG_PATH = TODO_DIR / "todo.log"

DEFAULT_CLIENT_ID = "1206215514588292"

DEFAULTS: dict[str, Any] = {
    "asana": {"workspace_gid": None, "client_id": DEFAULT_CLIENT_ID},
    "focus": {"project_gid": None, "stat_fields": {}},
    "tmux": {"enabled": True},
    "menubar": {"enabled": True, "refresh_seconds": 60},
    "notifications": {"enabled": False, "morning_time": "09:00", "evening_time": "20:00"},
    "terminal": {"blocking": False},
}


def _lookup(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


class Config:
    """YAML-backed settings. Keys are dotted paths, e.g. ``focus.project_gid``."""

    _data: dict[str, Any]

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path else CONFIG_PATH
        self._data = {}
        self._load()

    def _load(self) -> None:
        """Load config from disk, creating an empty file on first run."""
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()
            self._data = {}
            return
        with self.path.open() as f:
            data = yaml.safe_load(f)
        self._data = data if isinstance(data, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def get(self, key: str, default: object = None) -> Any:
        """Get config value, falling back to the built-in default, then ``default``."""
        val = _lookup(self._data, key)
        if val is None:
            val = _lookup(DEFAULTS, key)
        return default if val is None else val

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value
        self._save()

    def workspace_gid(self) -> str | None:
        val = self.get("asana.workspace_gid")
        return str(val) if val else None

    def focus_project_gid(self) -> str | None:
        """Focus project gid. None = focus features disabled."""
        val = self.get("focus.project_gid")
        return str(val).strip() if val else None

    def stat_fields(self) -> dict[str, str]:
        """Overrides for stat kind -> custom field gid."""
        val = self.get("focus.stat_fields", {})
        return {str(k): str(v) for k, v in val.items()} if isinstance(val, dict) else {}

    def client_id(self) -> str:
        return str(self.get("asana.client_id", DEFAULT_CLIENT_ID))

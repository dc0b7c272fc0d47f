import io
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime
from functools import partial

import pytest

from todo import config, context
from todo.lib import ansi


class Result:
    def __init__(self, exit_code: int, stdout: str, stderr: str):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    def __repr__(self) -> str:
        return f"Result(exit_code={self.exit_code})"


class FnCLIRunner:
    """Runs ``todo <args>`` through the real entry point, capturing output and exit code."""

    def invoke(self, args: list[str]) -> Result:
        from todo.cli import run

        out, err = io.StringIO(), io.StringIO()
        try:
            with redirect_stdout(out), redirect_stderr(err):
                code = run(args)
        except SystemExit as e:
            code = int(e.code) if e.code is not None else 1
        return Result(code, out.getvalue(), err.getvalue())


@pytest.fixture(autouse=True)
def tmp_todo_dir(tmp_path, monkeypatch):
    todo_dir = tmp_path / ".todo"
    monkeypatch.setattr(config, "TODO_DIR", todo_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", todo_dir / "config.yaml")
    monkeypatch.setattr(config, "CACHE_PATH", todo_dir / "cache.json")
    monkeypatch.setattr(config, "LOCK_PATH", todo_dir / "auth.lock")
    monkeypatch.setattr(config, "LOG_PATH", todo_dir / "todo.log")
    monkeypatch.setenv("TODO_ASANA_CLIENT_SECRET", "test-secret")
    monkeypatch.delenv("TODO_VERBOSE", raising=False)
    ansi.use(ansi.PLAIN)
    context.configure()
    return todo_dir


@pytest.fixture
def fake_asana(monkeypatch):
    """A fake Asana API wired into every client the commands build."""
    from tests.fakes import FakeAsana
    from todo.asana import Client

    fake = FakeAsana()
    monkeypatch.setattr(context, "Client", partial(Client, transport=fake.transport()))
    return fake


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the command clock. Defaults to a Wednesday morning."""
    from todo.lib import clock

    def pin(when: datetime) -> datetime:
        monkeypatch.setattr(clock, "now", lambda: when)
        return when

    pin(datetime(2024, 6, 12, 9, 0))
    return pin

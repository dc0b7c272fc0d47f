from datetime import date

import pytest

from tests.fakes import seed_credentials
from todo import cache as cache_mod
from todo import context
from todo.auth import OAuth2Credentials, PersonalAccessToken
from todo.cache import Cache
from todo.config import Config
from todo.context import load_context, resolve_credentials
from todo.core.errors import AuthError, NotFoundError


def test_cached_oauth_credentials_are_reused():
    creds = OAuth2Credentials("a", "r")
    assert resolve_credentials(Cache(creds=creds)) is creds


def test_use_pat_ignores_cached_oauth(monkeypatch):
    monkeypatch.setattr(context, "ask_for_pat", lambda: PersonalAccessToken("typed"))
    snapshot = Cache(creds=OAuth2Credentials("a", "r"))

    creds = resolve_credentials(snapshot, use_pat=True)

    assert creds == PersonalAccessToken("typed")
    assert cache_mod.load().creds == PersonalAccessToken("typed")


def test_cache_only_mode_never_prompts():
    with pytest.raises(AuthError, match="todo auth login"):
        resolve_credentials(Cache(), use_cache=True)


def test_workspace_is_detected_and_persisted(fake_asana, frozen_now):
    seed_credentials()
    with load_context() as ctx:
        assert ctx.workspace_gid() == "ws1"
    assert Config().workspace_gid() == "ws1"


def test_no_workspaces(fake_asana, frozen_now):
    seed_credentials()
    fake_asana.workspaces = []
    with load_context() as ctx, pytest.raises(NotFoundError):
        ctx.workspace_gid()


def test_tasks_are_stored_in_cache(fake_asana, frozen_now):
    seed_credentials()
    fake_asana.add_task("pay rent", "2024-06-01")
    with load_context() as ctx:
        assert [t.name for t in ctx.tasks()] == ["pay rent"]
    assert [t.name for t in cache_mod.load().tasks] == ["pay rent"]


def test_cache_mode_serves_from_cache(fake_asana, frozen_now):
    seed_credentials()
    with load_context() as ctx:
        ctx.tasks()
    fake_asana.add_task("new remote task", "2024-06-12")

    with load_context(use_cache=True) as ctx:
        assert ctx.tasks() == []


def test_focus_disabled_without_project(fake_asana, frozen_now):
    seed_credentials()
    with load_context() as ctx:
        assert ctx.focus_day() is None
        with pytest.raises(NotFoundError, match="todo setup"):
            ctx.require_focus_project()


def test_focus_day_for_today(fake_asana, frozen_now):
    seed_credentials()
    Config().set("focus.project_gid", "p-focus")
    with load_context() as ctx:
        assert ctx.focus_day().date == date(2024, 6, 12)
    assert cache_mod.load().focus_day.date == date(2024, 6, 12)


def test_refreshed_credentials_are_saved(fake_asana, frozen_now, monkeypatch):
    seed_credentials(OAuth2Credentials("expired", "refresh-token"))

    def refresh(token):
        fake_asana.valid_tokens.add("renewed")
        return OAuth2Credentials("renewed", token)

    monkeypatch.setattr("todo.auth.refresh_authorization", refresh)
    with load_context() as ctx:
        ctx.tasks()
    assert cache_mod.load().creds == OAuth2Credentials("renewed", "refresh-token")


def test_stale_cache_warning_on_stderr(fake_asana, frozen_now, capsys):
    seed_credentials()
    with load_context(use_cache=True):
        pass
    assert "never been updated" in capsys.readouterr().err

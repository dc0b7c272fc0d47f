import json
from datetime import datetime, timedelta

import pytest

from tests.fakes import FakeAsana
from todo.asana import Client, ensure_success, expect_data
from todo.auth import OAuth2Credentials, PersonalAccessToken
from todo.core.errors import ApiError, DecodeError, UnableToRefreshError, ValidationError
from todo.core.models import Section, UserTask, UserTaskList, UserTaskListRequest, Workspace


class Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 6, 12, 9, 0)

    def __call__(self) -> datetime:
        return self.now


def refresher(fake: FakeAsana, token: str = "fresh-token"):
    calls = []

    def reauthenticate(creds):
        calls.append(creds)
        fake.valid_tokens.add(token)
        return OAuth2Credentials(token, "refresh-token")

    return reauthenticate, calls


def test_fetch_list():
    fake = FakeAsana()
    with fake.client() as client:
        workspaces = client.fetch(Workspace)
    assert [w.gid for w in workspaces] == ["ws1"]


def test_fetch_sends_opt_fields_and_params():
    fake = FakeAsana()
    with fake.client() as client:
        client.fetch(UserTask, "utl1")
    request = fake.requests[-1]
    assert request.url.params["completed_since"] == "now"
    assert request.url.params["opt_fields"] == "this.gid,this.created_at,this.due_on,this.name"
    assert request.headers["Authorization"] == "Bearer good-token"


def test_fetch_single_entity():
    fake = FakeAsana()
    with fake.client() as client:
        task_list = client.fetch(UserTaskList, UserTaskListRequest(workspace_gid="ws1"))
    assert task_list.gid == "utl1"


def test_fetch_many_requires_list():
    fake = FakeAsana()
    fake.workspaces = {"gid": "ws1", "name": "x"}
    with fake.client() as client, pytest.raises(DecodeError):
        client.fetch(Workspace)


def test_fetch_non_success_is_api_error():
    fake = FakeAsana()
    fake.fail[("GET", "projects/p-focus/sections")] = 500
    with fake.client() as client, pytest.raises(ApiError) as exc:
        client.fetch(Section, "p-focus")
    assert exc.value.status == 500


def test_401_reauthenticates_and_retries_once():
    fake = FakeAsana()
    reauth, calls = refresher(fake)
    client = fake.client(OAuth2Credentials("expired", "refresh-token"), reauthenticate=reauth)

    workspaces = client.fetch(Workspace)

    assert [w.gid for w in workspaces] == ["ws1"]
    assert len(calls) == 1
    assert client.credentials == OAuth2Credentials("fresh-token", "refresh-token")
    assert fake.requests[-1].headers["Authorization"] == "Bearer fresh-token"
    client.close()


def test_second_401_is_api_error():
    fake = FakeAsana()

    def useless(creds):
        return OAuth2Credentials("still-bad", None)

    client = fake.client(OAuth2Credentials("expired", None), reauthenticate=useless)
    with pytest.raises(ApiError) as exc:
        client.fetch(Workspace)
    assert exc.value.status == 401
    assert len(fake.requests) == 2


def test_reauth_cooldown():
    fake = FakeAsana()
    clock = Clock()
    reauth, calls = refresher(fake)
    client = fake.client(OAuth2Credentials("expired", "r"), reauthenticate=reauth, clock=clock)
    client.fetch(Workspace)

    fake.valid_tokens.clear()
    clock.now += timedelta(minutes=4)
    sent = len(fake.requests)
    with pytest.raises(UnableToRefreshError, match="less than 5 minutes"):
        client.fetch(Workspace)
    assert len(calls) == 1
    assert len(fake.requests) == sent + 1

    clock.now += timedelta(minutes=2)
    client.fetch(Workspace)
    assert len(calls) == 2


def test_pat_cannot_refresh():
    fake = FakeAsana()
    client = fake.client(PersonalAccessToken("revoked"))
    with pytest.raises(UnableToRefreshError, match="not using OAuth2 flow"):
        client.fetch(Workspace)


def test_mutate_wraps_body_and_never_reauthenticates():
    fake = FakeAsana()
    reauth, calls = refresher(fake)
    client = fake.client(OAuth2Credentials("expired", "r"), reauthenticate=reauth)

    response = client.mutate("PUT", "tasks/1", {"completed": True})

    assert response.status_code == 401
    assert calls == []
    assert json.loads(fake.requests[-1].content) == {"data": {"completed": True}}
    with pytest.raises(ApiError):
        ensure_success(response)


def test_expect_data_decodes_envelope():
    fake = FakeAsana()
    with fake.client() as client:
        response = client.mutate("POST", "projects/p-focus/sections", {"name": "Later"})
        section = expect_data(response, Section.decode)
    assert section.name == "Later"


def test_invalid_base_url():
    with pytest.raises(ValidationError):
        Client(OAuth2Credentials("t"), base_url="not a url")

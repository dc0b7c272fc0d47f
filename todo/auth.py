"""Asana credentials: OAuth2 authorization code + PKCE, refresh, and the personal token fallback."""

import getpass
import os
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import keyring
from authlib.common.security import generate_token
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import OAuth2Client
from fncli import cli

from .core.errors import AuthError, DecodeError, UnableToRefreshError
from .lib import lock
from .lib.errors import echo
from .lib.log import log

__all__ = [
    "AuthState",
    "AuthorizationFlow",
    "Credentials",
    "OAuth2Credentials",
    "PersonalAccessToken",
    "ask_for_pat",
    "authorization_url",
    "bearer_token",
    "credentials_from_json",
    "credentials_to_json",
    "exchange_code",
    "generate_verifier",
    "oauth_session",
    "reauthenticate",
    "refresh_authorization",
]

AUTHORIZATION_URL = "https://app.asana.com/-/oauth_authorize"
TOKEN_URL = "https://app.asana.com/-/oauth_token"  # noqa: S105
REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
SERVICE_NAME = "todo-cli/asana"
SECRET_KEY = "client_secret"  # noqa: S105
SECRET_ENV = "TODO_ASANA_CLIENT_SECRET"  # noqa: S105
TOKEN_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
VERIFIER_LENGTH = 64


@dataclass(frozen=True)
class OAuth2Credentials:
    access_token: str
    refresh_token: str | None = None


@dataclass(frozen=True)
class PersonalAccessToken:
    token: str


Credentials = OAuth2Credentials | PersonalAccessToken


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING_USER_ACTION = "pending_user_action"
    AUTHENTICATED = "authenticated"


def bearer_token(creds: Credentials) -> str:
    if isinstance(creds, OAuth2Credentials):
        return creds.access_token
    return creds.token


def credentials_to_json(creds: Credentials) -> dict[str, Any]:
    if isinstance(creds, OAuth2Credentials):
        return {
            "kind": "oauth2",
            "access_token": creds.access_token,
            "refresh_token": creds.refresh_token,
        }
    return {"kind": "personal_access_token", "token": creds.token}


def credentials_from_json(data: Any) -> Credentials:
    if not isinstance(data, dict):
        raise DecodeError("credentials must be an object")
    kind = data.get("kind")
    if kind == "oauth2" and isinstance(data.get("access_token"), str):
        refresh = data.get("refresh_token")
        return OAuth2Credentials(data["access_token"], refresh if isinstance(refresh, str) else None)
    if kind == "personal_access_token" and isinstance(data.get("token"), str):
        return PersonalAccessToken(data["token"])
    raise DecodeError(f"unrecognized credentials kind: {kind!r}")


def get_client_secret() -> str | None:
    return os.environ.get(SECRET_ENV) or keyring.get_password(SERVICE_NAME, SECRET_KEY)


def store_client_secret(secret: str) -> None:
    keyring.set_password(SERVICE_NAME, SECRET_KEY, secret)


def _default_client_id() -> str:
    from .config import Config

    return Config().client_id()


def _require_client_secret(secret: str | None) -> str:
    secret = secret or get_client_secret()
    if not secret:
        raise AuthError(f"no OAuth client secret, run: todo auth secret <secret> (or set {SECRET_ENV})")
    return secret


# ── oauth session ────────────────────────────────────────────────────────────


def oauth_session(
    client_id: str,
    client_secret: str,
    transport: httpx.BaseTransport | None = None,
) -> OAuth2Client:
    return OAuth2Client(
        client_id=client_id,
        client_secret=client_secret,
        token_endpoint_auth_method="client_secret_post",
        redirect_uri=REDIRECT_URI,
        code_challenge_method="S256",
        timeout=TOKEN_TIMEOUT,
        transport=transport,
    )


def generate_verifier() -> str:
    return generate_token(VERIFIER_LENGTH)


def authorization_url(session: OAuth2Client, verifier: str) -> str:
    url, _state = session.create_authorization_url(AUTHORIZATION_URL, code_verifier=verifier)
    return url


def _request_token(call: Callable[..., Any], **kwargs: Any) -> dict[str, Any]:
    try:
        token = call(TOKEN_URL, **kwargs)
    except (OAuthError, httpx.HTTPError, ValueError) as e:
        raise AuthError(f"token request failed: {e}") from e
    if not isinstance(token.get("access_token"), str):
        raise AuthError("token response did not include an access token")
    return token


def exchange_code(session: OAuth2Client, code: str, verifier: str) -> OAuth2Credentials:
    token = _request_token(session.fetch_token, code=code, code_verifier=verifier)
    return OAuth2Credentials(token["access_token"], token.get("refresh_token"))


def refresh_authorization(
    refresh_token: str,
    client_id: str | None = None,
    client_secret: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> OAuth2Credentials:
    """Exchange a refresh token. Asana does not always rotate it, so the old one is kept."""
    log("refreshing access token")
    client_id = client_id or _default_client_id()
    with oauth_session(client_id, _require_client_secret(client_secret), transport) as session:
        token = _request_token(session.refresh_token, refresh_token=refresh_token)
    return OAuth2Credentials(token["access_token"], token.get("refresh_token") or refresh_token)


# ── interactive flows ────────────────────────────────────────────────────────


class AuthorizationFlow:
    """Interactive authorization-code flow, held under the auth lock for its whole duration."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        transport: httpx.BaseTransport | None = None,
        prompt: Callable[[str], str] = input,
        open_browser: Callable[[str], bool] = webbrowser.open,
        lock_path: Path | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.transport = transport
        self.prompt = prompt
        self.open_browser = open_browser
        self.lock_path = lock_path
        self.state = AuthState.UNAUTHENTICATED

    def run(self) -> OAuth2Credentials:
        with lock.auth_lock(self.lock_path):
            try:
                creds = self._authorize()
            except BaseException:
                self.state = AuthState.UNAUTHENTICATED
                raise
        self.state = AuthState.AUTHENTICATED
        return creds

    def _authorize(self) -> OAuth2Credentials:
        client_id = self.client_id or _default_client_id()
        client_secret = _require_client_secret(self.client_secret)
        verifier = generate_verifier()

        with oauth_session(client_id, client_secret, self.transport) as session:
            url = authorization_url(session, verifier)
            self.state = AuthState.PENDING_USER_ACTION
            log("waiting for authorization code")
            echo(f"Opening your browser and sending you to {url}")
            if not self.open_browser(url):
                echo("Could not open a browser, visit the URL above.")
            code = self.prompt("Once you're done, come back here and paste the code you got: ").strip()
            if not code:
                raise AuthError("no authorization code provided")

            log("exchanging authorization code")
            return exchange_code(session, code, verifier)


def ask_for_pat(prompt: Callable[[str], str] = getpass.getpass) -> PersonalAccessToken:
    """Static token fallback. Discouraged: it can never be refreshed."""
    token = prompt("Personal access token: ").strip()
    if not token:
        raise AuthError("no personal access token provided")
    return PersonalAccessToken(token)


def reauthenticate(
    creds: Credentials,
    flow_factory: Callable[[], AuthorizationFlow] = AuthorizationFlow,
) -> Credentials:
    if isinstance(creds, PersonalAccessToken):
        raise UnableToRefreshError("not using OAuth2 flow")
    if creds.refresh_token:
        return refresh_authorization(creds.refresh_token)
    log("no refresh token, restarting authorization flow")
    return flow_factory().run()


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("todo auth", name="login", flags={"pat": ["--pat"]})
def login(pat: bool = False) -> None:
    """Authorize against Asana (OAuth2 unless --pat)"""
    from . import cache as cache_mod

    creds: Credentials = ask_for_pat() if pat else AuthorizationFlow().run()
    snapshot = cache_mod.load()
    snapshot.creds = creds
    cache_mod.save(snapshot)
    echo("✔ authorized")


@cli("todo auth", name="status")
def status() -> None:
    """Show stored credential kind and whether an authorization is in progress"""
    from . import cache as cache_mod

    creds = cache_mod.load().creds
    if creds is None:
        echo("not authorized")
    elif isinstance(creds, OAuth2Credentials):
        refresh = "with" if creds.refresh_token else "without"
        echo(f"oauth2 ({refresh} refresh token)")
    else:
        echo("personal access token")
    if lock.is_auth_in_progress():
        echo("authorization in progress in another process")


@cli("todo auth", name="logout")
def logout() -> None:
    """Forget stored credentials"""
    from . import cache as cache_mod

    snapshot = cache_mod.load()
    snapshot.creds = None
    cache_mod.save(snapshot)
    echo("✗ credentials removed")


@cli("todo auth", name="secret")
def secret(value: str) -> None:
    """Store the OAuth client secret in the system keyring"""
    store_client_secret(value)
    echo("✔ client secret stored")

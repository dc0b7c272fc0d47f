"""Authenticated access to the Asana REST API.

Reads go through ``Client.fetch`` with a resource descriptor (see ``todo.core.models``);
a 401 triggers at most one re-authentication, rate limited to one attempt per
``REAUTH_COOLDOWN``. Writes go through ``Client.mutate`` and are never retried.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from types import TracebackType
from typing import Any, ClassVar, Protocol, TypeVar

import httpx

from .auth import Credentials, bearer_token
from .auth import reauthenticate as reauthenticate_credentials
from .core.errors import ApiError, DecodeError, UnableToRefreshError, ValidationError
from .lib.log import log

__all__ = [
    "API_BASE_URL",
    "HTTP_TIMEOUT",
    "REAUTH_COOLDOWN",
    "Client",
    "Resource",
    "ensure_success",
    "expect_data",
]

API_BASE_URL = "https://app.asana.com/api/1.0/"
HTTP_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
REAUTH_COOLDOWN = timedelta(minutes=5)


class Resource(Protocol):
    many: ClassVar[bool]

    @classmethod
    def segments(cls, param: Any) -> list[str]: ...

    @classmethod
    def fields(cls) -> list[str]: ...

    @classmethod
    def params(cls, param: Any) -> list[tuple[str, str]]: ...

    @classmethod
    def decode(cls, data: Any) -> Any: ...


def _unwrap(response: httpx.Response) -> Any:
    if not response.is_success:
        raise ApiError(response.status_code, response.text)
    try:
        payload = response.json()
    except ValueError as e:
        raise DecodeError("response body is not JSON") from e
    if not isinstance(payload, dict) or "data" not in payload:
        raise DecodeError("response body has no 'data' envelope")
    return payload["data"]


T = TypeVar("T")


def expect_data(response: httpx.Response, decode: Callable[[Any], T]) -> T:
    """Check a mutation response and decode its ``data`` payload."""
    return decode(_unwrap(response))


def _validate_base_url(base_url: str) -> httpx.URL:
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ValidationError(f"invalid base url: {base_url!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ValidationError(f"base url must be http(s) with a host: {base_url!r}")
    return url


class Client:
    def __init__(
        self,
        credentials: Credentials,
        base_url: str = API_BASE_URL,
        reauthenticate: Callable[[Credentials], Credentials] = reauthenticate_credentials,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.base_url = _validate_base_url(base_url)
        self.credentials = credentials
        self.last_reauth_attempt: datetime | None = None
        self._reauthenticate = reauthenticate
        self._transport = transport
        self._clock = clock
        self._retired: list[httpx.Client] = []
        self._http = self._build_http()

    def _build_http(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=HTTP_TIMEOUT,
            transport=self._transport,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {bearer_token(self.credentials)}",
            },
        )

    def fetch(self, resource: type[Resource], param: Any = None) -> Any:
        """GET a resource. Returns a list for collection resources, one entity otherwise."""
        path = "/".join(resource.segments(param))
        params = [*resource.params(param), ("opt_fields", ",".join(resource.fields()))]

        response = self._http.get(path, params=params)
        if response.status_code == 401:
            self._check_cooldown()
            log(f"401 on {path}, re-authenticating")
            self.reauthenticate()
            response = self._http.get(path, params=params)

        data = _unwrap(response)
        if not resource.many:
            return resource.decode(data)
        if not isinstance(data, list):
            raise DecodeError(f"expected a list from {path}, got {type(data).__name__}")
        return [resource.decode(item) for item in data]

    def mutate(self, method: str, path: str, body: dict[str, Any]) -> httpx.Response:
        return self._http.request(method, path, json={"data": body})

    def _check_cooldown(self) -> None:
        last = self.last_reauth_attempt
        if last is not None and self._clock() - last < REAUTH_COOLDOWN:
            raise UnableToRefreshError("last refresh attempt was less than 5 minutes ago")

    def reauthenticate(self) -> None:
        self.last_reauth_attempt = self._clock()
        self.credentials = self._reauthenticate(self.credentials)
        # in-flight mutations may still hold the old transport
        self._retired.append(self._http)
        self._http = self._build_http()
        log("credentials replaced")

    def close(self) -> None:
        for http in (*self._retired, self._http):
            http.close()
        self._retired.clear()

    def __enter__(self) -> "Client":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def ensure_success(response: httpx.Response) -> None:
    if not response.is_success:
        raise ApiError(response.status_code, response.text)

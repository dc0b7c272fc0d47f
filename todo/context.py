import dataclasses
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime

from . import cache as cache_mod
from .asana import Client
from .auth import AuthorizationFlow, Credentials, OAuth2Credentials, PersonalAccessToken, ask_for_pat
from .cache import Cache
from .config import Config
from .core.errors import AuthError, NotFoundError
from .core.models import UserTask, UserTaskList, UserTaskListRequest, Workspace
from .focus import FocusDay, StatFields, resolve_focus_day
from .lib import ansi, clock
from .lib.errors import echo
from .lib.log import log

__all__ = ["AppContext", "Options", "configure", "load_context", "resolve_credentials"]


@dataclasses.dataclass
class Options:
    use_cache: bool = False
    use_pat: bool = False


_options = Options()


def configure(use_cache: bool = False, use_pat: bool = False) -> None:
    """Global flags, set once by the entry point before dispatch."""
    global _options
    _options = Options(use_cache=use_cache, use_pat=use_pat)


def resolve_credentials(snapshot: Cache, use_pat: bool = False, use_cache: bool = False) -> Credentials:
    """Cached credentials first; otherwise ask. New credentials are persisted immediately."""
    creds = snapshot.creds
    if use_pat and isinstance(creds, PersonalAccessToken):
        return creds
    if not use_pat and isinstance(creds, OAuth2Credentials):
        return creds
    if use_cache:
        raise AuthError("not authorized, run: todo auth login")

    fresh: Credentials = ask_for_pat() if use_pat else AuthorizationFlow().run()
    snapshot.creds = fresh
    cache_mod.save(snapshot)
    return fresh


@dataclasses.dataclass
class AppContext:
    config: Config
    cache: Cache
    client: Client
    now: datetime
    stat_fields: StatFields
    use_cache: bool = False

    @property
    def today(self) -> date:
        return self.now.date()

    def focus_project_gid(self) -> str | None:
        return self.config.focus_project_gid()

    def require_focus_project(self) -> str:
        gid = self.focus_project_gid()
        if not gid:
            raise NotFoundError("no focus project configured, run: todo setup")
        return gid

    def workspace_gid(self) -> str:
        gid = self.config.workspace_gid()
        if gid:
            return gid
        workspaces: list[Workspace] = self.client.fetch(Workspace)
        if not workspaces:
            raise NotFoundError("no asana workspaces available to this account")
        gid = workspaces[0].gid
        log(f"using workspace {workspaces[0].name} ({gid})")
        self.config.set("asana.workspace_gid", gid)
        return gid

    def user_task_list(self) -> UserTaskList:
        if self.use_cache and self.cache.user_task_list:
            return self.cache.user_task_list
        task_list = self.client.fetch(UserTaskList, UserTaskListRequest(workspace_gid=self.workspace_gid()))
        self.cache.user_task_list = task_list
        return task_list

    def tasks(self) -> list[UserTask]:
        if self.use_cache and self.cache.tasks is not None:
            return self.cache.tasks
        tasks = self.client.fetch(UserTask, self.user_task_list().gid)
        self.cache.tasks = tasks
        return tasks

    def focus_day(self) -> FocusDay | None:
        """Today's focus day; None when focus is not configured."""
        project_gid = self.focus_project_gid()
        if not project_gid:
            return None
        cached = self.cache.focus_day
        if self.use_cache and cached and cached.date == self.today:
            return cached
        focus_day = resolve_focus_day(self.client, self.today, project_gid, self.stat_fields)
        self.cache.focus_day = focus_day
        return focus_day


@contextmanager
def load_context(use_cache: bool | None = None) -> Iterator[AppContext]:
    """Build the per-command context. Credentials are written back to the cache on exit."""
    use_cache = _options.use_cache if use_cache is None else use_cache
    cfg = Config()
    snapshot = cache_mod.load()
    now = clock.now()

    if use_cache and (warning := cache_mod.stale_warning(snapshot, now)):
        echo(ansi.red(warning), err=True)

    creds = resolve_credentials(snapshot, use_pat=_options.use_pat, use_cache=use_cache)
    client = Client(creds)
    ctx = AppContext(
        config=cfg,
        cache=snapshot,
        client=client,
        now=now,
        stat_fields=StatFields.from_config(cfg.stat_fields()),
        use_cache=use_cache,
    )
    try:
        yield ctx
    finally:
        snapshot.creds = client.credentials
        cache_mod.save(snapshot)
        client.close()

from fncli import cli

from .context import AppContext, load_context
from .lib.errors import echo
from .lib.log import log

__all__ = ["refresh_cache"]


def refresh_cache(ctx: AppContext) -> None:
    """Fetch the task list, tasks and today's focus day into the cache."""
    ctx.use_cache = False
    task_list = ctx.user_task_list()
    tasks = ctx.tasks()
    focus_day = ctx.focus_day()
    ctx.cache.last_updated = ctx.now.astimezone()
    log(
        f"cache refreshed: list {task_list.gid}, {len(tasks)} tasks"
        + (f", focus day {focus_day.date}" if focus_day else "")
    )


@cli("todo", name="update")
def update() -> None:
    """Refresh the local cache (run periodically for status output)"""
    with load_context(use_cache=False) as ctx:
        refresh_cache(ctx)
    echo("  cache updated")

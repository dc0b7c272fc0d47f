from collections.abc import Callable

from fncli import cli

from .asana import Client
from .core.errors import NotFoundError
from .core.models import Project
from .lib import ansi
from .lib.errors import echo
from .lib.fuzzy import find_in_pool

__all__ = ["choose_project"]


def choose_project(
    client: Client, workspace_gid: str, read: Callable[[str], str] = input
) -> Project:
    """Pick a project by number or (fuzzy) name until one matches."""
    projects: list[Project] = client.fetch(Project, workspace_gid)
    if not projects:
        raise NotFoundError("no projects in this workspace, create a focus project in Asana first")
    for i, project in enumerate(projects, 1):
        echo(f"{ansi.dim(f'{i:>3}.')} {project.name}")
    while True:
        ref = read("focus project: ").strip()
        if not ref:
            continue
        match = find_in_pool(ref, projects)
        if match is not None:
            return match
        echo(ansi.red(f"no project matches '{ref}'"))


@cli("todo", name="setup")
def setup() -> None:
    """Choose the Asana project that holds focus days"""
    from .context import load_context

    with load_context(use_cache=False) as ctx:
        project = choose_project(ctx.client, ctx.workspace_gid())
        ctx.config.set("focus.project_gid", project.gid)
        echo(f"{ansi.green('✔')} focus project: {ansi.cyan(project.name)}")

import sys
from pathlib import Path

import fncli
import httpx

from . import context
from .core.errors import AlreadyLockedError, TodoError
from .lib.errors import exit_error
from .lib.log import log

GLOBAL_FLAGS = {"--use-cache": "use_cache", "--use-pat": "use_pat"}

LOCKED_MESSAGE = (
    "another process is already authorizing with Asana.\n"
    "finish or wait for it; if none is running, the lock expires after 5 minutes "
    "(or remove ~/.todo/auth.lock)"
)


def split_global_flags(args: list[str]) -> tuple[dict[str, bool], list[str]]:
    """Pull ``--use-cache`` / ``--use-pat`` out of argv, wherever they appear."""
    options = {name: False for name in GLOBAL_FLAGS.values()}
    rest: list[str] = []
    for arg in args:
        if arg in GLOBAL_FLAGS:
            options[GLOBAL_FLAGS[arg]] = True
        else:
            rest.append(arg)
    return options, rest


def run(args: list[str]) -> int:
    options, user_args = split_global_flags(args)
    context.configure(**options)
    fncli.autodiscover(Path(__file__).parent, "todo")

    argv = ["todo", *user_args] if user_args else ["todo", "summary"]
    try:
        return fncli.dispatch(argv)
    except AlreadyLockedError:
        log("command aborted: auth lock held")
        exit_error(LOCKED_MESSAGE)
    except TodoError as e:
        log(f"command failed: {e}")
        exit_error(str(e))
    except httpx.HTTPError as e:
        log(f"http error: {e}")
        exit_error(f"network error: {e}")


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()

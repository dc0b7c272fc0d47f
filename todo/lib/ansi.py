import os
import sys
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    red: str = "\033[38;5;203m"
    green: str = "\033[38;5;114m"
    yellow: str = "\033[38;5;221m"
    blue: str = "\033[38;5;111m"
    cyan: str = "\033[38;5;117m"
    gray: str = "\033[38;5;245m"
    orange: str = "\033[38;5;208m"
    purple: str = "\033[38;5;141m"
    muted: str = "\033[90m"  # secondary text
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    reset: str = "\033[0m"


DEFAULT = Theme()
PLAIN = Theme(**{name: "" for name in Theme.__dataclass_fields__})
_active: Theme = DEFAULT if sys.stdout.isatty() and not os.environ.get("NO_COLOR") else PLAIN


def use(theme: Theme) -> None:
    global _active
    _active = theme


_COLORS = {"red", "green", "yellow", "blue", "cyan", "gray", "orange", "purple", "muted"}


def __getattr__(name: str) -> Callable[[str], str]:
    if name in _COLORS:

        def _wrap(text: str) -> str:
            return f"{getattr(_active, name)}{text}{_active.reset}"

        _wrap.__name__ = name
        return _wrap
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def bold(text: str) -> str:
    return f"{_active.bold}{text}{_active.reset}"


def dim(text: str) -> str:
    return f"{_active.dim}{text}{_active.reset}"

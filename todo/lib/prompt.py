import readline
from collections.abc import Callable

from . import ansi
from .errors import echo

__all__ = ["ask", "ask_digit"]

Reader = Callable[[str], str]


def ask(label: str, initial: str = "", read: Reader = input) -> str:
    """One line of operator input, pre-filled with ``initial`` for editing."""
    if not initial:
        return read(f"{label}: ").strip()
    readline.set_startup_hook(lambda: readline.insert_text(initial))
    try:
        return read(f"{label}: ").strip()
    finally:
        readline.set_startup_hook()


def ask_digit(label: str, read: Reader = input) -> int:
    """Ask until the operator enters a single value in 0-9."""
    while True:
        raw = read(f"{label} {ansi.dim('(0-9)')}: ").strip()
        if raw.isdigit() and 0 <= int(raw) <= 9:
            return int(raw)
        echo(ansi.red("value must be between 0 and 9"))

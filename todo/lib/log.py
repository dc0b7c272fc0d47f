import os
import sys
import time

from todo import config

__all__ = ["log", "warn"]


def log(msg: str) -> None:
    config.LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    with config.LOG_PATH.open("a") as f:
        f.write(f"{timestamp} {msg}\n")


def warn(msg: str) -> None:
    log(f"[warn] {msg}")
    if os.environ.get("TODO_VERBOSE"):
        sys.stderr.write(f"warning: {msg}\n")

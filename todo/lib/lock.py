import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from todo import config
from todo.core.errors import AlreadyLockedError

from .log import log, warn

__all__ = ["LOCK_MAX_AGE", "acquire", "auth_lock", "is_auth_in_progress", "release"]

LOCK_MAX_AGE = 300


def _lock_path(path: Path | None) -> Path:
    return path if path else config.LOCK_PATH


def _is_valid(path: Path, now: float) -> bool:
    """A lock is valid while its file holds a timestamp younger than LOCK_MAX_AGE."""
    try:
        created = int(path.read_text().strip())
    except (OSError, ValueError):
        return False
    return now - created < LOCK_MAX_AGE


def acquire(path: Path | None = None, now: Callable[[], float] = time.time) -> Path:
    lock_path = _lock_path(path)
    current = now()
    if _is_valid(lock_path, current):
        log(f"auth lock held at {lock_path}")
        raise AlreadyLockedError
    if lock_path.exists():
        log("removing stale auth lock")
        lock_path.unlink(missing_ok=True)

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    # the lock only appears once its timestamp is written
    staged = lock_path.with_name(f"{lock_path.name}.{os.getpid()}")
    staged.write_text(str(int(current)))
    try:
        os.link(staged, lock_path)
    except FileExistsError:
        raise AlreadyLockedError from None
    finally:
        staged.unlink(missing_ok=True)
    log(f"auth lock acquired at {lock_path}")
    return lock_path


def release(path: Path | None = None) -> None:
    lock_path = _lock_path(path)
    try:
        lock_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        warn(f"failed to remove auth lock: {e}")


@contextmanager
def auth_lock(path: Path | None = None, now: Callable[[], float] = time.time) -> Iterator[Path]:
    lock_path = acquire(path, now=now)
    try:
        yield lock_path
    finally:
        release(lock_path)


def is_auth_in_progress(path: Path | None = None, now: Callable[[], float] = time.time) -> bool:
    return _is_valid(_lock_path(path), now())

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from types import TracebackType
from typing import Any

from .log import log

__all__ = ["MAX_IN_FLIGHT", "MutationTracker"]

MAX_IN_FLIGHT = 4


class MutationTracker:
    """Runs remote mutations off the prompt loop and joins them before the command returns.

    Units are independent: no ordering between them and no rollback. ``join`` waits for
    every unit and re-raises the first failure in submission order.
    """

    def __init__(self, max_workers: int = MAX_IN_FLIGHT, name: str = "todo-sync") -> None:
        self.name = name
        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._futures: list[Future[Any]] = []

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future[Any]:
        future = self._pool.submit(fn, *args, **kwargs)
        self._futures.append(future)
        return future

    def pending(self) -> bool:
        return any(not f.done() for f in self._futures)

    def join(self) -> list[Any]:
        """Block until every unit finishes. Returns results in submission order."""
        futures, self._futures = self._futures, []
        wait(futures)

        errors = [e for e in (f.exception() for f in futures) if e is not None]
        if errors:
            log(f"[{self.name}] {len(errors)} of {len(futures)} unit(s) failed")
            raise errors[0]
        return [f.result() for f in futures]

    def __enter__(self) -> "MutationTracker":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.join()
            else:
                wait(self._futures)
        finally:
            self._pool.shutdown(wait=True)

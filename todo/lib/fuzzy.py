from collections.abc import Sequence
from difflib import get_close_matches
from typing import Protocol, TypeVar

__all__ = ["find_in_pool"]

FUZZY_MATCH_CUTOFF = 0.6


class Named(Protocol):
    @property
    def gid(self) -> str: ...

    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=Named)


def _match_index(ref: str, pool: Sequence[T]) -> T | None:
    if not ref.isdigit():
        return None
    idx = int(ref)
    if 1 <= idx <= len(pool):
        return pool[idx - 1]
    return None


def _match_gid(ref: str, pool: Sequence[T]) -> T | None:
    return next((item for item in pool if item.gid == ref), None)


def _match_substring(ref: str, pool: Sequence[T]) -> T | None:
    ref_lower = ref.lower()
    exact = next((item for item in pool if item.name.lower() == ref_lower), None)
    if exact:
        return exact
    matches = [item for item in pool if ref_lower in item.name.lower()]
    if len(matches) == 1:
        return matches[0]
    return None


def _match_fuzzy(ref: str, pool: Sequence[T]) -> T | None:
    names = [item.name.lower() for item in pool]
    matches = get_close_matches(ref.lower(), names, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if matches:
        return pool[names.index(matches[0])]
    return None


def find_in_pool(ref: str, pool: Sequence[T]) -> T | None:
    """Resolve a selection: 1-based index, gid, exact/unique substring, then fuzzy."""
    ref = ref.strip()
    if not ref or not pool:
        return None
    return (
        _match_index(ref, pool)
        or _match_gid(ref, pool)
        or _match_substring(ref, pool)
        or _match_fuzzy(ref, pool)
    )

"""Per-run id allocation."""
from __future__ import annotations

from collections import defaultdict


class IdAllocator:
    """Hands out 1-based sequential ids, one counter per entity kind.

    A fresh allocator is created for every pipeline run; share one between
    concurrent runs only behind your own lock.
    """

    def __init__(self) -> None:
        self._last: dict[str, int] = defaultdict(int)

    def next(self, kind: str) -> int:
        self._last[kind] += 1
        return self._last[kind]

    def peek(self, kind: str) -> int:
        return self._last[kind]

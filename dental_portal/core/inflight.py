"""In-flight tracking for per-entity actions."""

from contextlib import contextmanager
from typing import Hashable, Iterator, Set


class BusySet:
    """Set of ids whose action is currently pending."""

    def __init__(self):
        self._ids: Set[Hashable] = set()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def snapshot(self) -> frozenset:
        return frozenset(self._ids)

    def acquire(self, key: Hashable) -> bool:
        """Mark ``key`` busy. Returns False if it already was."""
        if key in self._ids:
            return False
        self._ids.add(key)
        return True

    def release(self, key: Hashable) -> None:
        self._ids.discard(key)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Keep ``key`` busy for the duration of the block. Caller acquires first."""
        try:
            yield
        finally:
            self.release(key)

"""Hash buckets: singly linked chains of pairs with copy-on-delete."""

from __future__ import annotations

from contextlib import nullcontext
from typing import ContextManager, Iterator, Optional

from conckit.cmap.common import IllegalParameterError
from conckit.cmap.pair import Pair


def _chain(first: Optional[Pair]) -> Iterator[Pair]:
    current = first
    while current is not None:
        yield current
        current = current.next


def _guard(lock) -> ContextManager:
    return lock if lock is not None else nullcontext()


class Bucket:
    """A bucket of pairs.

    Mutating methods take an optional lock; pass it unless the caller
    already holds it. Reads never lock: deletion rebuilds the chain prefix
    from copies, so a reader always sees a consistent chain.
    """

    def __init__(self) -> None:
        self._first: Optional[Pair] = None
        self._size = 0

    def put(self, pair: Pair, lock=None) -> bool:
        """Add *pair*; return True if it was new, False if an existing key was updated."""
        if pair is None:
            raise IllegalParameterError("pair is None")
        with _guard(lock):
            first = self._first
            if first is None:
                pair.next = None
                self._first = pair
                self._size += 1
                return True
            existing = next((p for p in _chain(first) if p.key == pair.key), None)
            if existing is not None:
                existing.element = pair.element
                return False
            pair.next = first
            self._first = pair
            self._size += 1
            return True

    def get(self, key: str) -> Optional[Pair]:
        """Return the pair with *key*, or None."""
        return next((p for p in _chain(self._first) if p.key == key), None)

    def delete(self, key: str, lock=None) -> bool:
        """Remove the pair with *key*; return whether it was present."""
        with _guard(lock):
            predecessors = []
            target = None
            for p in _chain(self._first):
                if p.key == key:
                    target = p
                    break
                predecessors.append(p)
            if target is None:
                return False
            new_first = target.next
            for p in reversed(predecessors):
                duplicate = p.copy()
                duplicate.next = new_first
                new_first = duplicate
            self._first = new_first
            self._size -= 1
            return True

    def clear(self, lock=None) -> None:
        """Remove every pair."""
        with _guard(lock):
            self._size = 0
            self._first = None

    def __iter__(self) -> Iterator[Pair]:
        return _chain(self._first)

    def __len__(self) -> int:
        return self._size

    def __str__(self) -> str:
        return "[ " + "".join(f"{p} " for p in self) + "]"
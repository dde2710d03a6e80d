"""A concurrency-safe string-keyed map split into independently locked segments."""

from __future__ import annotations

import threading
from typing import Any, Optional

from conckit.cmap.common import (
    DEFAULT_BUCKET_NUMBER,
    MAX_CONCURRENCY,
    IllegalParameterError,
    key_hash,
)
from conckit.cmap.pair import Pair
from conckit.cmap.redistributor import PairRedistributor
from conckit.cmap.segment import Segment

_UINT32_MAX = 0xFFFFFFFF


class ConcurrentMap:
    """Map from strings to non-None elements, safe for use from many threads."""

    def __init__(
        self, concurrency: int, pair_redistributor: Optional[PairRedistributor] = None
    ) -> None:
        if concurrency <= 0:
            raise IllegalParameterError("concurrency is too small")
        if concurrency > MAX_CONCURRENCY:
            raise IllegalParameterError("concurrency is too large")
        self._concurrency = concurrency
        self._segments = [
            Segment(DEFAULT_BUCKET_NUMBER, pair_redistributor)
            for _ in range(concurrency)
        ]
        self._total = 0
        self._lock = threading.Lock()

    @property
    def concurrency(self) -> int:
        """Number of segments."""
        return self._concurrency

    def put(self, key: str, element: Any) -> bool:
        """Store *element* under *key*; return True if the key was new.

        An existing key keeps its entry with the new element.
        """
        pair = Pair(key, element)
        added = self._find_segment(pair.hash).put(pair)
        if added:
            with self._lock:
                self._total += 1
        return added

    def get(self, key: str) -> Any:
        """Return the element under *key*, or None when the key is absent."""
        h = key_hash(key)
        pair = self._find_segment(h).get_with_hash(key, h)
        return None if pair is None else pair.element

    def delete(self, key: str) -> bool:
        """Remove *key*; return whether it was present."""
        if self._find_segment(key_hash(key)).delete(key):
            with self._lock:
                self._total -= 1
            return True
        return False

    def __len__(self) -> int:
        return self._total

    def _find_segment(self, h: int) -> Segment:
        if self._concurrency == 1:
            return self._segments[0]
        high = h >> 48 if h > _UINT32_MAX else h >> 16
        return self._segments[high % self._concurrency]
"""Copy-on-write integer arrays that are safe to share between threads."""

from __future__ import annotations

import threading
from typing import Tuple

_SEGMENT_LENGTH = 10


class ConcurrentArray:
    """Fixed-length integer array whose whole contents are replaced on every write.

    Readers always see a complete snapshot. Writers copy the snapshot, change
    one element and publish the copy.
    """

    def __init__(self, length: int) -> None:
        if length < 0:
            raise ValueError(f"Invalid array length: {length}")
        self._length = length
        self._values: Tuple[int, ...] = (0,) * length
        self._lock = threading.Lock()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._length:
            raise IndexError(f"Index out of range [0, {self._length})!")

    def set(self, index: int, elem: int) -> None:
        """Store *elem* at *index*."""
        self._check_index(index)
        with self._lock:
            values = list(self._values)
            values[index] = elem
            self._values = tuple(values)

    def get(self, index: int) -> int:
        """Return the element at *index*."""
        self._check_index(index)
        return self._values[index]

    def __len__(self) -> int:
        return self._length


class _Segment:
    """A short copy-on-write run of integers guarded by its own lock."""

    __slots__ = ("length", "_values", "_lock")

    def __init__(self, length: int) -> None:
        self.length = length
        self._values: Tuple[int, ...] = (0,) * length
        self._lock = threading.Lock()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.length:
            raise IndexError(f"index out of range [0, {self.length}) in segment")

    def set(self, index: int, elem: int) -> int:
        self._check_index(index)
        with self._lock:
            values = list(self._values)
            old = values[index]
            values[index] = elem
            self._values = tuple(values)
        return old

    def get(self, index: int) -> int:
        self._check_index(index)
        return self._values[index]


class SegmentedIntArray:
    """Integer array split into copy-on-write segments of ten elements.

    A write copies only the segment it touches, so writes to different
    segments do not contend.
    """

    def __init__(self, length: int) -> None:
        length = max(length, 0)
        self._length = length
        full, tail = divmod(length, _SEGMENT_LENGTH)
        self._segments = [_Segment(_SEGMENT_LENGTH) for _ in range(full)]
        if tail:
            self._segments.append(_Segment(tail))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._length:
            raise IndexError(f"index out of range [0, {self._length})")

    def set(self, index: int, elem: int) -> int:
        """Store *elem* at *index* and return the element it replaced."""
        self._check_index(index)
        segment, offset = divmod(index, _SEGMENT_LENGTH)
        return self._segments[segment].set(offset, elem)

    def get(self, index: int) -> int:
        """Return the element at *index*."""
        self._check_index(index)
        segment, offset = divmod(index, _SEGMENT_LENGTH)
        return self._segments[segment].get(offset)

    def __len__(self) -> int:
        return self._length
"""Policies that decide when and how a segment's buckets are rebuilt."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import List, Optional, Sequence

from conckit.cmap.bucket import Bucket
from conckit.cmap.common import (
    DEFAULT_BUCKET_LOAD_FACTOR,
    DEFAULT_BUCKET_MAX_SIZE,
    DEFAULT_BUCKET_NUMBER,
)


class BucketStatus(IntEnum):
    """How full a bucket is."""

    NORMAL = 0
    UNDERWEIGHT = 1
    OVERWEIGHT = 2


class PairRedistributor(ABC):
    """Redistributes the pairs of a segment when they are spread unevenly."""

    @abstractmethod
    def update_threshold(self, pair_total: int, bucket_number: int) -> None:
        """Recompute thresholds from the pair total and bucket count."""

    @abstractmethod
    def check_bucket_status(self, pair_total: int, bucket_size: int) -> BucketStatus:
        """Classify a bucket of *bucket_size* pairs."""

    @abstractmethod
    def redistribute(
        self, bucket_status: BucketStatus, buckets: Sequence[Bucket]
    ) -> Optional[List[Bucket]]:
        """Return a new bucket list holding all pairs, or None when nothing changes."""


class DefaultPairRedistributor(PairRedistributor):
    """Doubles the buckets when enough are overweight, halves them when enough are empty."""

    def __init__(
        self,
        load_factor: float = DEFAULT_BUCKET_LOAD_FACTOR,
        bucket_number: int = DEFAULT_BUCKET_NUMBER,
    ) -> None:
        if load_factor <= 0:
            load_factor = DEFAULT_BUCKET_LOAD_FACTOR
        self._load_factor = load_factor
        self._lock = threading.Lock()
        self._upper_threshold = 0
        self._overweight_bucket_count = 0
        self._empty_bucket_count = 0
        self.update_threshold(0, bucket_number)

    @property
    def load_factor(self) -> float:
        return self._load_factor

    @property
    def upper_threshold(self) -> int:
        return self._upper_threshold

    def update_threshold(self, pair_total: int, bucket_number: int) -> None:
        average = float(pair_total // bucket_number)
        if average < 100:
            average = 100.0
        self._upper_threshold = int(average * self._load_factor)

    def check_bucket_status(self, pair_total: int, bucket_size: int) -> BucketStatus:
        with self._lock:
            if (
                bucket_size > DEFAULT_BUCKET_MAX_SIZE
                or bucket_size >= self._upper_threshold
            ):
                self._overweight_bucket_count += 1
                return BucketStatus.OVERWEIGHT
            if bucket_size == 0:
                self._empty_bucket_count += 1
            return BucketStatus.NORMAL

    def _reset_counts(self) -> None:
        with self._lock:
            self._overweight_bucket_count = 0
            self._empty_bucket_count = 0

    def redistribute(
        self, bucket_status: BucketStatus, buckets: Sequence[Bucket]
    ) -> Optional[List[Bucket]]:
        current_number = len(buckets)
        if bucket_status == BucketStatus.OVERWEIGHT:
            if self._overweight_bucket_count * 4 < current_number:
                return None
            new_number = current_number << 1
        elif bucket_status == BucketStatus.UNDERWEIGHT:
            if current_number < 100 or self._empty_bucket_count * 4 < current_number:
                return None
            new_number = max(current_number >> 1, 2)
        else:
            return None
        if new_number == current_number:
            self._reset_counts()
            return None

        pairs = [p for bucket in buckets for p in bucket]
        if new_number > current_number:
            for bucket in buckets:
                bucket.clear()
            new_buckets = list(buckets) + [
                Bucket() for _ in range(new_number - current_number)
            ]
        else:
            new_buckets = [Bucket() for _ in range(new_number)]
        for p in pairs:
            new_buckets[p.hash % new_number].put(p)
        self._reset_counts()
        return new_buckets
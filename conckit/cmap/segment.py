"""Segments: lock-protected groups of buckets that rebalance themselves."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from conckit.cmap.bucket import Bucket
from conckit.cmap.common import (
    DEFAULT_BUCKET_LOAD_FACTOR,
    DEFAULT_BUCKET_NUMBER,
    PairRedistributorError,
    key_hash,
)
from conckit.cmap.pair import Pair
from conckit.cmap.redistributor import DefaultPairRedistributor, PairRedistributor

_log = logging.getLogger(__name__)


class Segment:
    """A concurrency-safe group of buckets holding key-element pairs."""

    def __init__(
        self,
        bucket_number: int = DEFAULT_BUCKET_NUMBER,
        pair_redistributor: Optional[PairRedistributor] = None,
    ) -> None:
        if bucket_number <= 0:
            bucket_number = DEFAULT_BUCKET_NUMBER
        if pair_redistributor is None:
            pair_redistributor = DefaultPairRedistributor(
                DEFAULT_BUCKET_LOAD_FACTOR, bucket_number
            )
        self._buckets = [Bucket() for _ in range(bucket_number)]
        self._pair_total = 0
        self._redistributor = pair_redistributor
        self._lock = threading.Lock()

    @property
    def bucket_count(self) -> int:
        """Number of buckets currently in use."""
        with self._lock:
            return len(self._buckets)

    def put(self, pair: Pair) -> bool:
        """Store *pair*; return True if its key was new."""
        with self._lock:
            bucket = self._buckets[pair.hash % len(self._buckets)]
            added = bucket.put(pair)
            if added:
                self._pair_total += 1
                self._redistribute(self._pair_total, len(bucket))
        return added

    def get(self, key: str) -> Optional[Pair]:
        """Return the pair stored under *key*, or None."""
        return self.get_with_hash(key, key_hash(key))

    def get_with_hash(self, key: str, key_hash: int) -> Optional[Pair]:
        """Like :meth:`get`, with the hash of *key* already computed."""
        with self._lock:
            bucket = self._buckets[key_hash % len(self._buckets)]
        return bucket.get(key)

    def delete(self, key: str) -> bool:
        """Remove the pair under *key*; return whether it existed."""
        with self._lock:
            bucket = self._buckets[key_hash(key) % len(self._buckets)]
            removed = bucket.delete(key)
            if removed:
                self._pair_total -= 1
                self._redistribute(self._pair_total, len(bucket))
        return removed

    def __len__(self) -> int:
        return self._pair_total

    def _redistribute(self, pair_total: int, bucket_size: int) -> None:
        # Must be called with self._lock held. A failing redistributor never
        # breaks the operation that triggered it.
        try:
            self._redistributor.update_threshold(pair_total, len(self._buckets))
            status = self._redistributor.check_bucket_status(pair_total, bucket_size)
            new_buckets = self._redistributor.redistribute(status, self._buckets)
        except Exception as exc:  # noqa: BLE001
            _log.warning("%s", PairRedistributorError(str(exc)))
            return
        if new_buckets is not None:
            self._buckets = list(new_buckets)
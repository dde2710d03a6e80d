"""Shared constants, key hashing and error types for the concurrent map."""

DEFAULT_BUCKET_LOAD_FACTOR = 0.75
"""Load factor used when a redistributor is given none (or a non-positive one)."""

DEFAULT_BUCKET_NUMBER = 16
"""Number of buckets a segment starts with."""

DEFAULT_BUCKET_MAX_SIZE = 1000
"""A bucket larger than this is always considered overweight."""

MAX_CONCURRENCY = 65536
"""Largest number of segments a concurrent map may have."""

_SEED = 13131
_MASK64 = (1 << 64) - 1
_MASK63 = 0x7FFFFFFFFFFFFFFF


def key_hash(key: str) -> int:
    """Return the BKDR hash of the UTF-8 bytes of *key* as a non-negative 63-bit int."""
    value = 0
    for byte in key.encode("utf-8"):
        value = (value * _SEED + byte) & _MASK64
    return value & _MASK63


class IllegalParameterError(ValueError):
    """Raised when a concurrent-map operation receives an invalid argument."""

    def __init__(self, message: str) -> None:
        super().__init__(f"concurrent map: illegal parameter: {message}")


class IllegalPairTypeError(TypeError):
    """Raised when an object that is not a pair is linked into a pair chain."""

    def __init__(self, pair: object) -> None:
        super().__init__(
            f"concurrent map: illegal pair type: {type(pair).__name__}"
        )


class PairRedistributorError(RuntimeError):
    """Raised when redistributing the pairs of a segment fails."""

    def __init__(self, message: str) -> None:
        super().__init__(
            f"concurrent map: failing pair redistribution: {message}"
        )
"""Key-element pairs that can be chained into singly linked lists."""

from __future__ import annotations

from typing import Any, Optional

from conckit.cmap.common import IllegalPairTypeError, IllegalParameterError, key_hash


class Pair:
    """A key with its hash and a non-None element, linkable to a next pair."""

    __slots__ = ("_key", "_hash", "_element", "_next")

    def __init__(self, key: str, element: Any) -> None:
        if element is None:
            raise IllegalParameterError("element is None")
        self._key = key
        self._hash = key_hash(key)
        self._element = element
        self._next: Optional[Pair] = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def hash(self) -> int:
        return self._hash

    @property
    def element(self) -> Any:
        return self._element

    @element.setter
    def element(self, value: Any) -> None:
        if value is None:
            raise IllegalParameterError("element is None")
        self._element = value

    @property
    def next(self) -> Optional[Pair]:
        return self._next

    @next.setter
    def next(self, value: Optional[Pair]) -> None:
        if value is not None and not isinstance(value, Pair):
            raise IllegalPairTypeError(value)
        self._next = value

    def copy(self) -> Pair:
        """Return an unlinked copy holding the same key and element."""
        return Pair(self._key, self._element)

    def describe(self, next_detail: bool = False) -> str:
        """Describe the pair; with *next_detail* the whole rest of the chain is included."""
        parts = [f"pair{{key:{self._key}, hash:{self._hash}, element:{self._element}"]
        following = self._next
        if next_detail:
            parts.append(", next:")
            if following is not None:
                parts.append(following.describe(True))
        else:
            parts.append(", nextKey:")
            if following is not None:
                parts.append(following.key)
        parts.append("}")
        return "".join(parts)

    def __str__(self) -> str:
        return self.describe(False)

    def __repr__(self) -> str:
        return f"Pair({self._key!r}, {self._element!r})"
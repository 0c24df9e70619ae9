"""Write-once lazy cell for derived caches on immutable results."""
from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class OnceCell(Generic[T]):
    """
    Holds a value that is computed at most once.

    The first caller of get_or_init runs the factory under a lock; later
    callers get the stored value. The cell cannot be reassigned.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = _UNSET
        self._lock = threading.Lock()

    def is_set(self) -> bool:
        return self._value is not _UNSET

    def get(self) -> T | None:
        return None if self._value is _UNSET else self._value

    def get_or_init(self, factory: Callable[[], T]) -> T:
        if self._value is not _UNSET:
            return self._value
        with self._lock:
            if self._value is _UNSET:
                self._value = factory()
        return self._value

    def __repr__(self) -> str:
        state = "set" if self.is_set() else "unset"
        return f"OnceCell({state})"

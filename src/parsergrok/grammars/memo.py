"""
Compute-once cells for expensive, race-prone initialization.

OnceCell runs its factory at most once; concurrent callers block on the
in-flight computation and then all observe the same outcome. A factory that
raises is also cached: later calls re-raise the same exception instead of
retrying.

KeyedOnceCache maps keys to OnceCells, so each key is computed once no
matter how many threads ask for it at the same time.

Usage:
    >>> cache = KeyedOnceCache()
    >>> cache.get_or_compute("go", lambda: load_expensive("go"))
"""

import threading
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

T = TypeVar('T')

_UNSET = object()


class OnceCell(Generic[T]):
    """Single-assignment cell filled lazily by a factory."""

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self._lock = threading.Lock()
        self._value = _UNSET
        self._error: Optional[BaseException] = None

    @property
    def is_resolved(self) -> bool:
        return self._value is not _UNSET or self._error is not None

    def get(self) -> T:
        """Return the value, computing it on first access."""
        if not self.is_resolved:
            with self._lock:
                if not self.is_resolved:
                    try:
                        self._value = self._factory()
                    except Exception as e:
                        self._error = e
        if self._error is not None:
            raise self._error
        return self._value


class KeyedOnceCache(Generic[T]):
    """Thread-safe map of key -> OnceCell."""

    def __init__(self):
        self._cells: Dict[Hashable, OnceCell[T]] = {}
        self._lock = threading.Lock()

    def cell(self, key: Hashable, factory: Callable[[], T]) -> OnceCell[T]:
        """Return the cell for key, creating it with factory if absent."""
        with self._lock:
            cell = self._cells.get(key)
            if cell is None:
                cell = OnceCell(factory)
                self._cells[key] = cell
            return cell

    def get_or_compute(self, key: Hashable, factory: Callable[[], T]) -> T:
        return self.cell(key, factory).get()

    def invalidate(self, key: Hashable, cell: Optional[OnceCell[T]] = None) -> bool:
        """
        Drop the cell for key; returns whether one was dropped.

        If cell is given, the entry is dropped only while it still holds that
        cell, so a caller discarding a failed computation cannot evict a
        replacement installed in the meantime.
        """
        with self._lock:
            current = self._cells.get(key)
            if current is None or (cell is not None and current is not cell):
                return False
            del self._cells[key]
            return True

"""Thread-safe bounded cache with least-recently-used eviction."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Generic, Hashable, List, Optional, TypeVar

from skybins.errors import ValidationError

LOGGER = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """Holds at most ``capacity`` values, evicting the least recently used.

    A single lock guards every access to the underlying ordering. In
    :meth:`get_or_compute` the value is computed outside the lock, so two
    callers missing on the same key may both compute; the last insert wins.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity <= 0:
            raise ValidationError(f"Cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        """Cached value for ``key`` (marking it recently used), else ``None``."""

        with self._lock:
            try:
                self._entries.move_to_end(key)
            except KeyError:
                return None
            return self._entries[key]

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                LOGGER.debug("Evicted %s from cache", evicted)

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        value = self.get(key)
        if value is not None:
            return value
        value = compute()
        self.put(key, value)
        return value

    def keys(self) -> List[K]:
        """Keys from least to most recently used."""

        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

"""
Fixed-capacity least-recently-used set.

Backs the deduplication window: a bounded record of message identifiers
already seen during this process lifetime. Not durable.
"""

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Generic, TypeVar

from crossqueue.constants import DEFAULT_DEDUP_CAPACITY
from crossqueue.errors import ConfigurationError

K = TypeVar("K", bound=Hashable)


class LruCache(Generic[K]):
    """
    LRU set with read promotion.

    Both reads and writes move a key to the most-recently-used position. When
    a new key arrives at capacity the least-recently-used key is evicted first.
    """

    def __init__(self, capacity: int = DEFAULT_DEDUP_CAPACITY):
        """
        Initialize the cache.

        Args:
            capacity: Maximum number of keys held.

        Raises:
            ConfigurationError: If capacity is not a positive integer.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(f"LRU capacity must be a positive integer, got {capacity!r}")
        self._capacity = capacity
        self._entries: OrderedDict[K, None] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def contains(self, key: K) -> bool:
        """Check membership, promoting the key if present."""
        with self._lock:
            if key not in self._entries:
                return False
            self._entries.move_to_end(key)
            return True

    def add(self, key: K) -> None:
        """Insert or promote a key, evicting the least-recently-used key if full."""
        with self._lock:
            self._insert(key)

    def add_if_absent(self, key: K) -> bool:
        """
        Atomically check and insert a key.

        Returns:
            True if the key was new and has been added, False if it was
            already present (it is promoted either way).
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                return False
            self._insert(key)
            return True

    def discard(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _insert(self, key: K) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
            return
        if len(self._entries) >= self._capacity:
            self._entries.popitem(last=False)
        self._entries[key] = None

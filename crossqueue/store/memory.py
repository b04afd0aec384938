"""
In-memory durable store.

Durable only for the lifetime of the object: share one instance between
engines to simulate a restart against the same storage.
"""

import asyncio


class InMemoryStore:
    """Dictionary-backed implementation of the DurableStore contract."""

    def __init__(self) -> None:
        self._strings: dict[str, str] = {}
        self._lists: dict[str, list[str]] = {}
        self._lock = asyncio.Lock()

    async def get_string(self, key: str) -> str | None:
        async with self._lock:
            return self._strings.get(key)

    async def set_string(self, key: str, value: str) -> None:
        async with self._lock:
            self._lists.pop(key, None)
            self._strings[key] = value

    async def remove(self, key: str) -> None:
        async with self._lock:
            self._strings.pop(key, None)
            self._lists.pop(key, None)

    async def get_string_list(self, key: str) -> list[str]:
        async with self._lock:
            return list(self._lists.get(key, []))

    async def set_string_list(self, key: str, values: list[str]) -> None:
        async with self._lock:
            self._strings.pop(key, None)
            self._lists[key] = list(values)

    def keys(self) -> list[str]:
        """List all stored keys."""
        return [*self._strings, *self._lists]

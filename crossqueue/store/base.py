"""
Durable store contract.

The queue engine only ever talks to storage through these five operations.
An absent key reads as None (strings) or an empty list (string lists); it is
never an error. Every operation may raise StoreError when the backing storage
is unavailable.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class DurableStore(Protocol):
    """String-keyed key-value store that survives process restarts."""

    async def get_string(self, key: str) -> str | None:
        ...

    async def set_string(self, key: str, value: str) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...

    async def get_string_list(self, key: str) -> list[str]:
        ...

    async def set_string_list(self, key: str, values: list[str]) -> None:
        ...

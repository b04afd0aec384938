"""
In-process notification channel.

Endpoints own an asyncio queue; the consuming engine drains it from a
listener task, so delivery never runs consumer code on the sender's stack.
"""

import asyncio
import logging
import threading
from functools import lru_cache
from collections.abc import AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

_CLOSED = object()


class Endpoint:
    """A live receiving end registered under a channel name."""

    def __init__(self, name: str):
        self.name = name
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, payload: Any) -> bool:
        """
        Queue a payload for the listener.

        Returns:
            False if the endpoint is closed and the payload was dropped.
        """
        if self._closed:
            return False
        self._inbox.put_nowait(payload)
        return True

    def close(self) -> None:
        """Stop accepting payloads and end iteration once the inbox drains."""
        if not self._closed:
            self._closed = True
            self._inbox.put_nowait(_CLOSED)

    def task_done(self) -> None:
        self._inbox.task_done()

    async def join(self) -> None:
        """Wait until every queued payload has been processed."""
        await self._inbox.join()

    async def __aiter__(self) -> AsyncIterator[Any]:
        while True:
            payload = await self._inbox.get()
            if payload is _CLOSED:
                self._inbox.task_done()
                return
            yield payload

    def __repr__(self) -> str:
        return f"<Endpoint(name={self.name!r}, closed={self._closed})>"


class InMemoryNotificationChannel:
    """
    Process-local name server for endpoints.

    Registering a name that is already taken replaces the previous endpoint.
    """

    def __init__(self) -> None:
        self._endpoints: dict[str, Endpoint] = {}
        self._lock = threading.Lock()

    def register(self, name: str, endpoint: Endpoint) -> None:
        with self._lock:
            previous = self._endpoints.get(name)
            self._endpoints[name] = endpoint
        if previous is not None and previous is not endpoint:
            logger.info("Replaced endpoint registration", extra={"channel": name})

    def lookup(self, name: str) -> Endpoint | None:
        with self._lock:
            endpoint = self._endpoints.get(name)
        if endpoint is not None and endpoint.closed:
            return None
        return endpoint

    def unregister(self, name: str, endpoint: Endpoint | None = None) -> None:
        """
        Remove the registration for a name.

        Args:
            name: The channel name.
            endpoint: If given, only remove the registration when it still
                points at this endpoint.
        """
        with self._lock:
            current = self._endpoints.get(name)
            if current is None:
                return
            if endpoint is not None and current is not endpoint:
                return
            del self._endpoints[name]

    def deliver(self, endpoint: Endpoint, payload: Any) -> None:
        if not endpoint.put(payload):
            logger.debug(
                "Dropped payload for closed endpoint",
                extra={"channel": endpoint.name},
            )

    def names(self) -> list[str]:
        """List registered channel names."""
        with self._lock:
            return list(self._endpoints)


@lru_cache
def get_notification_channel() -> InMemoryNotificationChannel:
    """Get the process-wide notification channel."""
    return InMemoryNotificationChannel()

"""
Broadcast observer stream.

Each subscription has its own unbounded queue. Messages emitted while
nobody is subscribed are dropped; they stay in the pending set and replay
on the next initialize.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")

_END = object()


class Subscription(Generic[T]):
    """One observer's view of a MessageStream."""

    def __init__(self, stream: "MessageStream[T]"):
        self._stream = stream
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._done = False

    def _push(self, item: object) -> None:
        self._queue.put_nowait(item)

    async def get(self) -> T:
        """
        Wait for the next message.

        Raises:
            StopAsyncIteration: If the stream has been closed.
        """
        if self._done:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._done = True
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def drain(self) -> list[T]:
        """Return every message already received without waiting."""
        items: list[T] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _END:
                self._done = True
                break
            items.append(item)  # type: ignore[arg-type]
        return items

    def cancel(self) -> None:
        """Stop receiving messages."""
        self._stream._unsubscribe(self)
        self._done = True

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await self.get()


class MessageStream(Generic[T]):
    """Fan-out of emitted messages to every current subscription."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription[T]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        subscription: Subscription[T] = Subscription(self)
        if self._closed:
            subscription._push(_END)
        else:
            self._subscriptions.append(subscription)
        return subscription

    def emit(self, message: T) -> int:
        """
        Hand a message to every subscription.

        Returns:
            Number of subscriptions that received it.
        """
        if self._closed:
            raise RuntimeError("Cannot emit on a closed stream")
        for subscription in self._subscriptions:
            subscription._push(message)
        return len(self._subscriptions)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription._push(_END)
        self._subscriptions.clear()

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

"""
Unit tests for the observer stream.
"""

import asyncio

import pytest

from crossqueue.queue.stream import MessageStream


class TestMessageStream:
    """Tests for MessageStream and Subscription."""

    def test_broadcast_to_all_subscribers(self):
        """Test that every subscriber receives every message."""
        stream: MessageStream[str] = MessageStream()
        first, second = stream.subscribe(), stream.subscribe()

        assert stream.emit("a") == 2
        stream.emit("b")

        assert first.drain() == ["a", "b"]
        assert second.drain() == ["a", "b"]

    def test_emit_without_subscribers_drops(self):
        """Test that messages emitted before subscription are not buffered."""
        stream: MessageStream[str] = MessageStream()

        assert stream.emit("early") == 0

        subscription = stream.subscribe()
        assert subscription.drain() == []

    async def test_async_iteration_ends_on_close(self):
        """Test that iteration stops once the stream is closed."""
        stream: MessageStream[int] = MessageStream()
        subscription = stream.subscribe()
        received = []

        async def consume():
            async for message in subscription:
                received.append(message)

        task = asyncio.create_task(consume())
        stream.emit(1)
        stream.emit(2)
        stream.close()
        await asyncio.wait_for(task, timeout=1)

        assert received == [1, 2]

    async def test_get_after_close(self):
        """Test that get() raises once the stream has ended."""
        stream: MessageStream[int] = MessageStream()
        subscription = stream.subscribe()
        stream.close()

        with pytest.raises(StopAsyncIteration):
            await subscription.get()

        late = stream.subscribe()
        with pytest.raises(StopAsyncIteration):
            await late.get()

    def test_emit_on_closed_stream(self):
        """Test that emitting on a closed stream is an error."""
        stream: MessageStream[int] = MessageStream()
        stream.close()

        with pytest.raises(RuntimeError):
            stream.emit(1)

    def test_cancel_subscription(self):
        """Test that a cancelled subscription stops receiving."""
        stream: MessageStream[int] = MessageStream()
        subscription = stream.subscribe()

        subscription.cancel()
        stream.emit(1)

        assert stream.subscriber_count == 0
        assert subscription.drain() == []

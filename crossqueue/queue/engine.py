"""
Queue engine: durable, deduplicated, replayable delivery for one channel.

Message lifecycle:
- publish/enqueue -> pending set (durable)
- initialize -> replay of pending ids not yet seen in this process
- live notification -> dedup check -> pending set -> decode -> observers
- ack -> removed from pending, recorded as acknowledged
- garbage_collect -> acknowledged ids purged from pending

Concurrency: all pending/acknowledged read-modify-write sequences of one
engine run under a single asyncio lock. Other processes writing the same
channel through the same store are NOT coordinated; the store is rewritten
whole, so concurrent cross-process writers can lose updates.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from crossqueue.channel.base import NotificationChannel
from crossqueue.channel.memory import Endpoint
from crossqueue.config import Settings, get_settings
from crossqueue.constants import (
    SPAN_ACK,
    SPAN_ENQUEUE,
    SPAN_GARBAGE_COLLECT,
    SPAN_INITIALIZE,
    SPAN_REPLAY,
    DeliverySource,
    GcPolicy,
)
from crossqueue.errors import DecodeError, InvalidMessageError, StoreError
from crossqueue.observability.metrics import MetricsCollector, get_metrics
from crossqueue.observability.tracing import get_tracer
from crossqueue.queue.lru import LruCache
from crossqueue.queue.repository import PendingRepository
from crossqueue.queue.stream import MessageStream, Subscription
from crossqueue.store.base import DurableStore
from crossqueue.types.codec import DictCodec, MessageCodec
from crossqueue.types.message import Record, decode_record, encode_record, extract_id

if TYPE_CHECKING:
    from crossqueue.queue.registry import ChannelRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueueEngine(Generic[T]):
    """
    Queue engine serving one named channel.

    Construction performs no I/O; ``initialize`` binds the live endpoint and
    replays the pending set. Obtain engines through ChannelRegistry so there is
    at most one per channel name in the process.
    """

    def __init__(
        self,
        channel: str,
        store: DurableStore,
        notifications: NotificationChannel,
        codec: MessageCodec[T] | None = None,
        registry: "ChannelRegistry | None" = None,
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the engine.

        Args:
            channel: The channel name.
            store: Durable store holding the pending and acknowledged sets.
            notifications: Name server for live endpoints.
            codec: Converts records to typed messages. Defaults to plain records.
            registry: Registry to leave on dispose().
            settings: Optional settings override.
            metrics: Optional metrics collector override.
        """
        if not channel:
            raise ValueError("Channel name must not be empty")

        settings = settings or get_settings()

        self.channel = channel
        self._notifications = notifications
        self._codec: MessageCodec[T] = codec or DictCodec()  # type: ignore[assignment]
        self._registry = registry
        self._repo = PendingRepository(store, channel)
        self._dedup: LruCache[str] = LruCache(settings.dedup_capacity)
        self._gc_policy = settings.gc_policy
        self._ack_retention = settings.ack_retention
        self._metrics = metrics or get_metrics()

        self._stream: MessageStream[T] = MessageStream()
        self._lock = asyncio.Lock()
        self._endpoint: Endpoint | None = None
        self._listener: asyncio.Task | None = None

    @property
    def codec(self) -> MessageCodec[T]:
        return self._codec

    @property
    def stream(self) -> MessageStream[T]:
        """The broadcast stream of delivered messages."""
        return self._stream

    @property
    def endpoint(self) -> Endpoint | None:
        """The endpoint registered by the last initialize(), if still bound."""
        return self._endpoint

    @property
    def dedup(self) -> LruCache[str]:
        return self._dedup

    def subscribe(self) -> Subscription[T]:
        """Subscribe to delivered messages. Subscribe before initialize() to see replay."""
        return self._stream.subscribe()

    async def initialize(self) -> int:
        """
        Bind the live endpoint and replay the pending set.

        Registering replaces any endpoint previously registered under this
        channel name in the process.

        Returns:
            Number of messages emitted during replay.
        """
        with get_tracer().start_as_current_span(SPAN_INITIALIZE) as span:
            span.set_attribute("channel", self.channel)

            await self._stop_listener()

            endpoint = Endpoint(self.channel)
            self._notifications.register(self.channel, endpoint)
            self._endpoint = endpoint
            self._listener = asyncio.create_task(self._listen(endpoint))

            logger.info("Queue endpoint registered", extra={"channel": self.channel})

            replayed = await self._replay()
            span.set_attribute("replayed", replayed)
            return replayed

    async def enqueue(self, record: Mapping[str, Any]) -> str:
        """
        Persist a record into the pending set.

        Re-enqueuing an existing id overwrites its stored payload.

        Args:
            record: The message record.

        Returns:
            The message id.

        Raises:
            InvalidMessageError: If the record has no usable id or is not JSON.
            StoreError: If the store write fails.
        """
        message_id = extract_id(record)
        encoded = encode_record(record)

        with get_tracer().start_as_current_span(SPAN_ENQUEUE) as span:
            span.set_attribute("channel", self.channel)
            span.set_attribute("message_id", message_id)

            async with self._lock:
                created = await self._repo.upsert(message_id, encoded)
                self._update_depth()

        self._metrics.record_enqueued(self.channel)
        logger.debug(
            "Message persisted",
            extra={"channel": self.channel, "message_id": message_id, "created": created},
        )
        return message_id

    async def publish(self, record: Mapping[str, Any]) -> str:
        """
        Persist a record, then hand it to the live endpoint if one is bound.

        The record is always persisted first, so a consumer that dies before
        acknowledging still gets it on replay.

        Returns:
            The message id.
        """
        message_id = await self.enqueue(record)

        endpoint = self._notifications.lookup(self.channel)
        if endpoint is not None:
            self._notifications.deliver(endpoint, dict(record))
        else:
            logger.debug(
                "No live endpoint, message left for replay",
                extra={"channel": self.channel, "message_id": message_id},
            )
        return message_id

    async def send(self, message: T) -> str:
        """
        Encode a typed message with the engine's codec and publish it.

        Returns:
            The message id.
        """
        return await self.publish(self._codec.encode(message))

    async def ack(self, message_id: str) -> bool:
        """
        Acknowledge a message.

        Acknowledging an id that is already acknowledged or was never pending
        is a no-op.

        Returns:
            True if the call acknowledged a pending message.
        """
        with get_tracer().start_as_current_span(SPAN_ACK) as span:
            span.set_attribute("channel", self.channel)
            span.set_attribute("message_id", message_id)

            async with self._lock:
                acknowledged = await self._repo.acknowledge(message_id)
                if acknowledged and self._gc_policy == GcPolicy.EAGER:
                    await self._collect()
                self._update_depth()

            span.set_attribute("acknowledged", acknowledged)

        if acknowledged:
            self._metrics.record_acked(self.channel)
            logger.debug(
                "Message acknowledged",
                extra={"channel": self.channel, "message_id": message_id},
            )
        return acknowledged

    async def garbage_collect(self) -> int:
        """
        Purge acknowledged ids from the pending set.

        Returns:
            Number of pending entries removed.
        """
        with get_tracer().start_as_current_span(SPAN_GARBAGE_COLLECT) as span:
            span.set_attribute("channel", self.channel)
            async with self._lock:
                purged = await self._collect()
                self._update_depth()
            span.set_attribute("purged", purged)
            return purged

    async def pending_ids(self) -> list[str]:
        """Ids currently in the pending set, in insertion order."""
        async with self._lock:
            pending = await self._repo.load_pending()
        return list(pending)

    async def acked_ids(self) -> list[str]:
        """Ids currently recorded as acknowledged."""
        async with self._lock:
            return await self._repo.load_acked()

    async def dispose(self) -> None:
        """Close the stream, release the endpoint and leave the registry."""
        endpoint = self._endpoint
        await self._stop_listener()
        if endpoint is not None:
            self._notifications.unregister(self.channel, endpoint)
        self._stream.close()
        if self._registry is not None:
            self._registry.remove(self.channel, self)
        logger.info("Queue disposed", extra={"channel": self.channel})

    async def clear_all(self) -> None:
        """
        Erase the pending and acknowledged sets and release the endpoint.

        Also forgets the deduplication window. Meant for tests and resets.
        """
        endpoint = self._endpoint
        await self._stop_listener()
        if endpoint is not None:
            self._notifications.unregister(self.channel, endpoint)
        async with self._lock:
            await self._repo.clear()
        self._dedup.clear()
        self._update_depth()
        logger.warning("Queue storage cleared", extra={"channel": self.channel})

    async def _replay(self) -> int:
        with get_tracer().start_as_current_span(SPAN_REPLAY) as span:
            span.set_attribute("channel", self.channel)

            async with self._lock:
                pending = await self._repo.load_pending()
                acked = set(await self._repo.load_acked())
                # Entries written back after their ack are never acked again
                if self._gc_policy == GcPolicy.EAGER and not acked.isdisjoint(pending):
                    await self._collect()
                self._update_depth()

            emitted = 0
            for message_id, raw in pending.items():
                if message_id in acked or self._dedup.contains(message_id):
                    continue
                try:
                    message = self._decode(message_id, decode_record, raw)
                except DecodeError as e:
                    self._record_decode_failure(e)
                    continue
                self._dedup.add(message_id)
                if self._emit(message, message_id, DeliverySource.REPLAY):
                    emitted += 1

            logger.info(
                "Replayed pending messages",
                extra={"channel": self.channel, "pending": len(pending), "emitted": emitted},
            )
            span.set_attribute("emitted", emitted)
            return emitted

    async def _listen(self, endpoint: Endpoint) -> None:
        async for payload in endpoint:
            try:
                await self._handle_notification(payload)
            except StoreError:
                logger.exception(
                    "Failed to persist live message",
                    extra={"channel": self.channel},
                )
            finally:
                endpoint.task_done()

    async def _handle_notification(self, payload: Any) -> None:
        try:
            message_id = extract_id(payload)
            encoded = encode_record(payload)
        except InvalidMessageError as e:
            logger.warning(
                "Dropped malformed live message",
                extra={"channel": self.channel, "error": str(e)},
            )
            return

        if not self._dedup.add_if_absent(message_id):
            self._metrics.record_duplicate(self.channel)
            logger.debug(
                "Suppressed duplicate message",
                extra={"channel": self.channel, "message_id": message_id},
            )
            return

        try:
            async with self._lock:
                await self._repo.upsert(message_id, encoded)
                self._update_depth()
        except StoreError:
            self._dedup.discard(message_id)
            raise

        try:
            message = self._decode(message_id, dict, payload)
        except DecodeError as e:
            self._record_decode_failure(e)
            return

        self._emit(message, message_id, DeliverySource.LIVE)

    def _decode(self, message_id: str, parse: Callable[[Any], Record], raw: Any) -> T:
        try:
            return self._codec.decode(parse(raw))
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(message_id, str(e)) from e

    def _emit(self, message: T, message_id: str, source: DeliverySource) -> bool:
        if self._stream.closed:
            return False
        self._stream.emit(message)
        self._metrics.record_delivered(self.channel, source)
        logger.debug(
            "Message delivered",
            extra={"channel": self.channel, "message_id": message_id, "source": source.value},
        )
        return True

    def _record_decode_failure(self, error: DecodeError) -> None:
        self._metrics.record_decode_failure(self.channel)
        logger.warning(
            "Skipped undecodable message",
            extra={"channel": self.channel, "message_id": error.message_id, "error": error.reason},
        )

    async def _collect(self) -> int:
        purged = await self._repo.collect(self._ack_retention)
        self._metrics.record_gc(self.channel, purged)
        if purged:
            logger.info(
                "Garbage collected acknowledged messages",
                extra={"channel": self.channel, "purged": purged},
            )
        return purged

    def _update_depth(self) -> None:
        self._metrics.update_pending_depth(self.channel, self._repo.depth)

    async def _stop_listener(self) -> None:
        if self._endpoint is not None:
            self._endpoint.close()
            self._endpoint = None
        if self._listener is not None:
            # Closing the endpoint ends the listener once its inbox is drained
            listener, self._listener = self._listener, None
            await listener

    def __repr__(self) -> str:
        return f"<QueueEngine(channel={self.channel!r})>"

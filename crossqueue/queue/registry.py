"""
Channel registry.

Single point of truth for which QueueEngine serves a channel name in this
process. The composition root builds one ChannelRegistry and either passes
it around or installs it as the process default with configure_registry(),
which enables the module-level send_by_name() entry point.
"""

import logging
import threading
from collections.abc import Mapping
from typing import Any

from crossqueue.channel.base import NotificationChannel
from crossqueue.channel.memory import get_notification_channel
from crossqueue.config import Settings, get_settings
from crossqueue.constants import SPAN_SEND
from crossqueue.errors import ChannelNotInitializedError
from crossqueue.observability.metrics import MetricsCollector
from crossqueue.observability.tracing import get_tracer
from crossqueue.queue.engine import QueueEngine
from crossqueue.store.base import DurableStore
from crossqueue.types.codec import MessageCodec

logger = logging.getLogger(__name__)

# Process default registry
_registry: "ChannelRegistry | None" = None


class ChannelRegistry:
    """
    Maps channel names to live QueueEngine instances.

    At most one engine exists per name. Creating an engine performs no I/O.
    """

    def __init__(
        self,
        store: DurableStore,
        notifications: NotificationChannel | None = None,
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the registry.

        Args:
            store: Durable store shared by every engine.
            notifications: Name server for live endpoints. Defaults to the
                process-wide in-memory channel.
            settings: Optional settings override passed to engines.
            metrics: Optional metrics collector passed to engines.
        """
        self._store = store
        self._notifications = notifications or get_notification_channel()
        self._settings = settings or get_settings()
        self._metrics = metrics
        self._engines: dict[str, QueueEngine[Any]] = {}
        self._lock = threading.Lock()

    @property
    def store(self) -> DurableStore:
        return self._store

    @property
    def notifications(self) -> NotificationChannel:
        return self._notifications

    def get_or_create(
        self,
        channel: str,
        codec: MessageCodec[Any] | None = None,
    ) -> QueueEngine[Any]:
        """
        Return the engine for a channel, creating it on first use.

        The codec only applies when the engine is created; later calls get
        the existing engine unchanged.

        Args:
            channel: The channel name.
            codec: Optional message codec for a new engine.

        Returns:
            The channel's engine.
        """
        with self._lock:
            engine = self._engines.get(channel)
            if engine is not None:
                return engine

            engine = QueueEngine(
                channel,
                self._store,
                self._notifications,
                codec=codec,
                registry=self,
                settings=self._settings,
                metrics=self._metrics,
            )
            self._engines[channel] = engine

        logger.info("Created queue engine", extra={"channel": channel})
        return engine

    def get(self, channel: str) -> QueueEngine[Any] | None:
        with self._lock:
            return self._engines.get(channel)

    def remove(self, channel: str, engine: QueueEngine[Any] | None = None) -> bool:
        """
        Remove a channel's engine from the registry.

        Args:
            channel: The channel name.
            engine: If given, only remove when the registered engine is this one.

        Returns:
            True if an engine was removed.
        """
        with self._lock:
            current = self._engines.get(channel)
            if current is None or (engine is not None and current is not engine):
                return False
            del self._engines[channel]
            return True

    def names(self) -> list[str]:
        with self._lock:
            return list(self._engines)

    def clear(self) -> None:
        """Forget every engine without disposing them."""
        with self._lock:
            self._engines.clear()

    async def dispose_all(self) -> None:
        """Dispose every registered engine."""
        with self._lock:
            engines = list(self._engines.values())
        for engine in engines:
            await engine.dispose()

    async def send_by_name(self, channel: str, record: Mapping[str, Any]) -> None:
        """
        Send a record to a channel without holding its engine.

        When the channel has an engine in this process the record is persisted
        through it before being handed to the live endpoint. A live endpoint
        owned elsewhere gets the record directly, without persistence.

        Raises:
            ChannelNotInitializedError: If the channel has neither an engine
                nor a live endpoint in this process.
            InvalidMessageError: If the record has no usable id.
            StoreError: If persisting fails.
        """
        with get_tracer().start_as_current_span(SPAN_SEND) as span:
            span.set_attribute("channel", channel)

            engine = self.get(channel)
            if engine is not None:
                await engine.publish(record)
                return

            endpoint = self._notifications.lookup(channel)
            if endpoint is None:
                raise ChannelNotInitializedError(channel)

            logger.warning(
                "Delivered to endpoint without persistence",
                extra={"channel": channel},
            )
            self._notifications.deliver(endpoint, dict(record))

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._engines

    def __len__(self) -> int:
        with self._lock:
            return len(self._engines)


def configure_registry(
    store: DurableStore,
    notifications: NotificationChannel | None = None,
    settings: Settings | None = None,
) -> ChannelRegistry:
    """
    Install the process default registry.

    Should be called once by the composition root on startup.

    Returns:
        ChannelRegistry: The new default registry.
    """
    global _registry
    _registry = ChannelRegistry(store, notifications, settings)
    return _registry


def get_registry() -> ChannelRegistry:
    """
    Get the process default registry.

    Raises:
        RuntimeError: If configure_registry() has not been called.
    """
    if _registry is None:
        raise RuntimeError("Registry not configured. Call configure_registry() first.")
    return _registry


def reset_registry() -> None:
    """Drop the process default registry."""
    global _registry
    _registry = None


async def send_by_name(channel: str, record: Mapping[str, Any]) -> None:
    """Send a record through the process default registry."""
    await get_registry().send_by_name(channel, record)

"""
Garbage collector for acknowledged messages.

The collector runs periodically and purges acknowledged ids from the pending
sets of its channels. Engines configured with the periodic GC policy rely on
it; with the eager policy it only catches entries that a lost cross-process
update wrote back.

It works in one of two modes:
- with a ChannelRegistry, it collects through each registered engine, under
  the engine's own lock
- with a store and channel names, it collects the stored sets directly (for
  a standalone collector process)
"""

import asyncio
import logging
import signal

from crossqueue.config import Settings, get_settings
from crossqueue.observability.logging import channel_context, setup_logging
from crossqueue.observability.metrics import get_metrics
from crossqueue.observability.tracing import instrument_sqlalchemy, setup_tracing
from crossqueue.queue.registry import ChannelRegistry
from crossqueue.queue.repository import PendingRepository
from crossqueue.store.base import DurableStore
from crossqueue.store.sql import SqlStore

logger = logging.getLogger(__name__)


class Collector:
    """
    Periodic garbage collector.

    Runs periodically to:
    1. Load each channel's acknowledged set
    2. Remove those ids from the channel's pending set
    3. Trim the acknowledged set and record metrics
    """

    def __init__(
        self,
        registry: ChannelRegistry | None = None,
        store: DurableStore | None = None,
        channels: list[str] | None = None,
        interval_seconds: float | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the collector.

        Args:
            registry: Collect through the engines of this registry.
            store: Store to collect directly when no registry is given.
            channels: Channel names to collect in store mode.
            interval_seconds: Seconds between collector runs.
            settings: Optional settings override.
        """
        if registry is None and store is None:
            raise ValueError("Collector needs a registry or a store")

        settings = settings or get_settings()
        self.registry = registry
        self.store = store
        self.channels = list(channels if channels is not None else settings.collector_channels)
        self.interval = interval_seconds or settings.collector_interval_seconds
        self._retention = settings.ack_retention
        self._running = False
        self._metrics = get_metrics()

    async def start(self) -> None:
        """Start the collector loop."""
        logger.info(f"Collector starting with interval {self.interval}s")
        self._running = True

        while self._running:
            try:
                purged = await self.run_once()

                if purged > 0:
                    logger.info(f"Purged {purged} acknowledged messages")

            except Exception as e:
                logger.exception(f"Error in collector loop: {e}")

            await asyncio.sleep(self.interval)

        logger.info("Collector stopped")

    async def stop(self) -> None:
        """Stop the collector."""
        logger.info("Collector stopping")
        self._running = False

    async def run_once(self) -> int:
        """
        Run one collection pass over every channel.

        Returns:
            Number of pending entries purged.
        """
        if self.registry is not None:
            return await self._collect_engines(self.registry)
        return await self._collect_store(self.store)

    async def _collect_engines(self, registry: ChannelRegistry) -> int:
        total = 0
        for channel in registry.names():
            engine = registry.get(channel)
            if engine is None:
                continue
            with channel_context(channel, mode="registry"):
                purged = await engine.garbage_collect()
                logger.debug("Collected channel", extra={"purged": purged})
            total += purged
        return total

    async def _collect_store(self, store: DurableStore) -> int:
        total = 0
        for channel in self.channels:
            with channel_context(channel, mode="store"):
                repo = PendingRepository(store, channel)
                purged = await repo.collect(self._retention)
                self._metrics.record_gc(channel, purged)
                self._metrics.update_pending_depth(channel, repo.depth)
                logger.debug("Collected channel", extra={"purged": purged})
            total += purged
        return total


async def run_async() -> None:
    """Run the collector asynchronously against the configured SQL store."""
    setup_logging()
    settings = get_settings()

    store = SqlStore.from_settings(settings)
    if settings.tracing_enabled:
        setup_tracing(settings)
        instrument_sqlalchemy(store.engine)
    await store.create_tables()

    collector = Collector(store=store, channels=settings.collector_channels)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(collector.stop())
        )

    try:
        await collector.start()
    finally:
        await store.close()


def run() -> None:
    """Run the collector."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()

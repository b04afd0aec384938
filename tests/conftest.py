"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from crossqueue.channel.memory import InMemoryNotificationChannel
from crossqueue.config import Settings
from crossqueue.constants import GcPolicy
from crossqueue.observability.metrics import MetricsCollector
from crossqueue.queue.engine import QueueEngine
from crossqueue.queue.registry import ChannelRegistry
from crossqueue.store.connection import get_test_engine
from crossqueue.store.memory import InMemoryStore
from crossqueue.store.sql import SqlStore
from crossqueue.types.codec import MessageCodec


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        dedup_capacity=100,
        ack_retention=1000,
        gc_policy=GcPolicy.EAGER,
        log_level="DEBUG",
        log_format="console",
        collector_interval_seconds=0.01,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Create a metrics collector on an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def store() -> InMemoryStore:
    """Create an in-memory durable store."""
    return InMemoryStore()


@pytest.fixture
def notifications() -> InMemoryNotificationChannel:
    """Create a notification channel private to the test."""
    return InMemoryNotificationChannel()


@pytest.fixture
def channel_name() -> str:
    """Generate a unique channel name."""
    return f"test-channel-{uuid4().hex[:8]}"


@pytest.fixture
def registry(
    store: InMemoryStore,
    notifications: InMemoryNotificationChannel,
    test_settings: Settings,
    metrics: MetricsCollector,
) -> ChannelRegistry:
    """Create a channel registry over the test store and channel."""
    return ChannelRegistry(store, notifications, settings=test_settings, metrics=metrics)


@pytest.fixture
def make_engine(
    store: InMemoryStore,
    notifications: InMemoryNotificationChannel,
    test_settings: Settings,
    metrics: MetricsCollector,
    channel_name: str,
) -> Callable[..., QueueEngine[Any]]:
    """Factory for engines bound to the shared test store."""

    def factory(
        codec: MessageCodec[Any] | None = None,
        settings: Settings | None = None,
        channel: str | None = None,
    ) -> QueueEngine[Any]:
        return QueueEngine(
            channel or channel_name,
            store,
            notifications,
            codec=codec,
            settings=settings or test_settings,
            metrics=metrics,
        )

    return factory


@pytest_asyncio.fixture
async def sql_store(tmp_path: Path) -> AsyncGenerator[SqlStore]:
    """Create a SQL store on a temporary SQLite database."""
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}"
    store = SqlStore(get_test_engine(database_url))
    await store.create_tables()

    yield store

    await store.close()


@pytest.fixture
def sample_message() -> dict[str, Any]:
    """Create a sample message record."""
    return {
        "id": f"msg-{uuid4().hex}",
        "payload": "Hello from the producer!",
    }

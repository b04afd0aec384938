"""
Queue module.
Contains the queue engine, its deduplication window, observer stream and channel registry.
"""

from crossqueue.queue.engine import QueueEngine
from crossqueue.queue.lru import LruCache
from crossqueue.queue.registry import (
    ChannelRegistry,
    configure_registry,
    get_registry,
    reset_registry,
    send_by_name,
)
from crossqueue.queue.repository import PendingRepository
from crossqueue.queue.stream import MessageStream, Subscription

__all__ = [
    "QueueEngine",
    "LruCache",
    "PendingRepository",
    "MessageStream",
    "Subscription",
    "ChannelRegistry",
    "configure_registry",
    "get_registry",
    "reset_registry",
    "send_by_name",
]

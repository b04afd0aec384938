"""
Application constants.
Centralized location for all constant values used across the package.
"""

from enum import StrEnum


class GcPolicy(StrEnum):
    """
    When acknowledged messages are purged from the pending set.

    - EAGER: garbage collection runs after every acknowledgment
    - PERIODIC: garbage collection is left to the collector or explicit calls
    """

    EAGER = "eager"
    PERIODIC = "periodic"


class DeliverySource(StrEnum):
    """Where an emitted message came from."""

    LIVE = "live"
    REPLAY = "replay"


# Default values
DEFAULT_DEDUP_CAPACITY = 100
DEFAULT_ACK_RETENTION = 1000

# Durable store key layout
PENDING_KEY_PREFIX = "_queue_"
ACKED_KEY_PREFIX = "_acked_"

# Message identity fields, checked in order
ID_FIELDS = ("id", "messageId")

# Metrics names
METRIC_MESSAGES_ENQUEUED = "crossqueue_messages_enqueued_total"
METRIC_MESSAGES_DELIVERED = "crossqueue_messages_delivered_total"
METRIC_MESSAGES_DUPLICATE = "crossqueue_messages_duplicate_total"
METRIC_MESSAGES_ACKED = "crossqueue_messages_acked_total"
METRIC_DECODE_FAILURES = "crossqueue_decode_failures_total"
METRIC_GC_PURGED = "crossqueue_gc_purged_total"
METRIC_PENDING_DEPTH = "crossqueue_pending_depth"

# Trace span names
SPAN_INITIALIZE = "queue.initialize"
SPAN_REPLAY = "queue.replay"
SPAN_ENQUEUE = "queue.enqueue"
SPAN_ACK = "queue.ack"
SPAN_GARBAGE_COLLECT = "queue.garbage_collect"
SPAN_SEND = "queue.send"

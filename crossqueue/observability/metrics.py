"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
)

from crossqueue.constants import (
    METRIC_DECODE_FAILURES,
    METRIC_GC_PURGED,
    METRIC_MESSAGES_ACKED,
    METRIC_MESSAGES_DELIVERED,
    METRIC_MESSAGES_DUPLICATE,
    METRIC_MESSAGES_ENQUEUED,
    METRIC_PENDING_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the queue.

    Collects metrics for:
    - Messages persisted into the pending set
    - Messages emitted to observers (live and replay)
    - Duplicates suppressed by the deduplication window
    - Acknowledgments and garbage collection
    - Decode failures
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.messages_enqueued = Counter(
            METRIC_MESSAGES_ENQUEUED,
            "Total number of messages persisted into the pending set",
            ["channel"],
            registry=self._registry,
        )

        self.messages_delivered = Counter(
            METRIC_MESSAGES_DELIVERED,
            "Total number of messages emitted to observers",
            ["channel", "source"],
            registry=self._registry,
        )

        self.messages_duplicate = Counter(
            METRIC_MESSAGES_DUPLICATE,
            "Total number of duplicate messages suppressed",
            ["channel"],
            registry=self._registry,
        )

        self.messages_acked = Counter(
            METRIC_MESSAGES_ACKED,
            "Total number of acknowledged messages",
            ["channel"],
            registry=self._registry,
        )

        self.decode_failures = Counter(
            METRIC_DECODE_FAILURES,
            "Total number of records skipped because they failed to decode",
            ["channel"],
            registry=self._registry,
        )

        self.gc_purged = Counter(
            METRIC_GC_PURGED,
            "Total number of acknowledged entries purged from the pending set",
            ["channel"],
            registry=self._registry,
        )

        self.pending_depth = Gauge(
            METRIC_PENDING_DEPTH,
            "Number of entries in the pending set",
            ["channel"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_enqueued(self, channel: str) -> None:
        """Record a message persisted into the pending set."""
        self.messages_enqueued.labels(channel=channel).inc()

    def record_delivered(self, channel: str, source: str) -> None:
        """Record a message emitted to observers."""
        self.messages_delivered.labels(channel=channel, source=source).inc()

    def record_duplicate(self, channel: str) -> None:
        """Record a suppressed duplicate."""
        self.messages_duplicate.labels(channel=channel).inc()

    def record_acked(self, channel: str) -> None:
        """Record an acknowledgment."""
        self.messages_acked.labels(channel=channel).inc()

    def record_decode_failure(self, channel: str) -> None:
        """Record a record skipped on decode failure."""
        self.decode_failures.labels(channel=channel).inc()

    def record_gc(self, channel: str, purged: int) -> None:
        """Record entries purged by garbage collection."""
        if purged:
            self.gc_purged.labels(channel=channel).inc(purged)

    def update_pending_depth(self, channel: str, depth: int) -> None:
        """Update pending set depth for a channel."""
        self.pending_depth.labels(channel=channel).set(depth)


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics

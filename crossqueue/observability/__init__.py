"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from crossqueue.observability.logging import channel_context, setup_logging
from crossqueue.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from crossqueue.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "channel_context",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
]

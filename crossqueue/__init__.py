"""
Cross-context Message Queue

A durable, at-least-once message queue for handing messages between producer and
consumer contexts that start, stop and restart independently. Provides persistence,
in-process deduplication, replay of unacknowledged messages and garbage collection
of acknowledged ones.
"""

__version__ = "1.0.0"

"""
Collector module.
Contains the periodic garbage collector for acknowledged messages.
"""

from crossqueue.collector.main import Collector, run

__all__ = ["Collector", "run"]

"""
Durable store module.
Contains the string-keyed store contract and its in-memory and SQL implementations.
"""

from crossqueue.store.base import DurableStore
from crossqueue.store.connection import create_store_engine, get_test_engine
from crossqueue.store.memory import InMemoryStore
from crossqueue.store.models import Base, KeyValueEntry
from crossqueue.store.sql import SqlStore

__all__ = [
    "DurableStore",
    "InMemoryStore",
    "SqlStore",
    "KeyValueEntry",
    "Base",
    "create_store_engine",
    "get_test_engine",
]

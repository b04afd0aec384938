"""
Contract tests for durable store implementations.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text

from crossqueue.config import Settings
from crossqueue.errors import StoreError
from crossqueue.store.base import DurableStore
from crossqueue.store.memory import InMemoryStore
from crossqueue.store.sql import SqlStore


class TestDurableStoreContract:
    """Tests every store against the DurableStore contract."""

    @pytest_asyncio.fixture(params=["memory", "sql"])
    async def durable_store(self, request, sql_store: SqlStore) -> DurableStore:
        """Create each store implementation in turn."""
        if request.param == "memory":
            return InMemoryStore()
        return sql_store

    async def test_satisfies_protocol(self, durable_store: DurableStore):
        """Test that the implementation matches the contract."""
        assert isinstance(durable_store, DurableStore)

    async def test_absent_keys(self, durable_store: DurableStore):
        """Test that absent keys read as None and empty lists."""
        assert await durable_store.get_string("missing") is None
        assert await durable_store.get_string_list("missing") == []

    async def test_set_and_overwrite_string(self, durable_store: DurableStore):
        """Test string upserts."""
        await durable_store.set_string("k", "one")
        await durable_store.set_string("k", "two")

        assert await durable_store.get_string("k") == "two"

    async def test_string_list(self, durable_store: DurableStore):
        """Test string list storage keeps order."""
        await durable_store.set_string_list("acked", ["c", "a", "b"])

        assert await durable_store.get_string_list("acked") == ["c", "a", "b"]

        await durable_store.set_string_list("acked", [])
        assert await durable_store.get_string_list("acked") == []

    async def test_remove(self, durable_store: DurableStore):
        """Test removal, including removal of absent keys."""
        await durable_store.set_string("k", "v")
        await durable_store.set_string_list("l", ["x"])

        await durable_store.remove("k")
        await durable_store.remove("l")
        await durable_store.remove("never-set")

        assert await durable_store.get_string("k") is None
        assert await durable_store.get_string_list("l") == []

    async def test_kinds_do_not_mix(self, durable_store: DurableStore):
        """Test that a key holds either a string or a list."""
        await durable_store.set_string("k", "v")
        assert await durable_store.get_string_list("k") == []

        await durable_store.set_string_list("k", ["x"])
        assert await durable_store.get_string("k") is None


class TestSqlStore:
    """SQL-specific store tests."""

    async def test_values_survive_reconnect(self, tmp_path):
        """Test that data written by one store instance is read by the next."""
        database_url = f"sqlite+aiosqlite:///{tmp_path / 'restart.db'}"

        first = SqlStore.from_settings(Settings(database_url=database_url))
        await first.create_tables()
        await first.set_string("_queue_orders", '{"a":"{}"}')
        await first.close()

        second = SqlStore.from_settings(Settings(database_url=database_url))
        try:
            assert await second.get_string("_queue_orders") == '{"a":"{}"}'
        finally:
            await second.close()

    async def test_driver_errors_become_store_errors(self, sql_store: SqlStore):
        """Test that database failures are wrapped in StoreError."""
        async with sql_store.engine.begin() as conn:
            await conn.execute(text("DROP TABLE kv_entries"))

        with pytest.raises(StoreError) as exc_info:
            await sql_store.get_string("k")

        assert exc_info.value.operation == "get_string"
        assert exc_info.value.key == "k"

    async def test_corrupt_list_is_store_error(self, sql_store: SqlStore):
        """Test that an unreadable list value is reported as a store failure."""
        async with sql_store.engine.begin() as conn:
            await conn.execute(
                text("INSERT INTO kv_entries (key, value, is_list) VALUES ('l', 'nope', 1)")
            )

        with pytest.raises(StoreError):
            await sql_store.get_string_list("l")

"""
SQL-backed durable store.

Persists store entries in the ``kv_entries`` table through async SQLAlchemy.
Writes are single-row upserts, so each call is atomic on its own; the
read-modify-write sequences built on top of it are not (see QueueEngine).
"""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from crossqueue.config import Settings
from crossqueue.errors import StoreError
from crossqueue.store.connection import create_store_engine
from crossqueue.store.models import Base, KeyValueEntry

logger = logging.getLogger(__name__)


class SqlStore:
    """
    DurableStore implementation on top of an async SQLAlchemy engine.

    Supports PostgreSQL (asyncpg) and SQLite (aiosqlite). Every driver error is
    re-raised as StoreError.
    """

    def __init__(self, engine: AsyncEngine):
        """
        Initialize the store with an engine.

        Args:
            engine: The async engine. The store disposes it on close().
        """
        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SqlStore":
        """Create a store from the configured database URL."""
        return cls(create_store_engine(settings))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_tables(self) -> None:
        """Create the store table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError("create_tables", KeyValueEntry.__tablename__, e) from e
        logger.info("Durable store tables ready")

    async def close(self) -> None:
        """Dispose the underlying engine."""
        await self._engine.dispose()
        logger.info("Durable store connection closed")

    @asynccontextmanager
    async def _session(self, operation: str, key: str) -> AsyncGenerator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.error(
                "Durable store operation failed",
                extra={"operation": operation, "key": key, "error": str(e)},
            )
            raise StoreError(operation, key, e) from e

    async def _get(self, operation: str, key: str) -> KeyValueEntry | None:
        async with self._session(operation, key) as session:
            result = await session.execute(
                select(KeyValueEntry).where(KeyValueEntry.key == key)
            )
            return result.scalar_one_or_none()

    async def _put(self, operation: str, key: str, value: str, is_list: bool) -> None:
        async with self._session(operation, key) as session:
            await session.execute(self._upsert(key, value, is_list))

    def _upsert(self, key: str, value: str, is_list: bool) -> Any:
        values = {"key": key, "value": value, "is_list": is_list}
        update = {"value": value, "is_list": is_list, "updated_at": func.now()}
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(KeyValueEntry).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(KeyValueEntry).values(**values)
        else:
            raise StoreError("upsert", key, NotImplementedError(f"Unsupported dialect {dialect}"))
        return stmt.on_conflict_do_update(index_elements=["key"], set_=update)

    async def get_string(self, key: str) -> str | None:
        entry = await self._get("get_string", key)
        if entry is None or entry.is_list:
            return None
        return entry.value

    async def set_string(self, key: str, value: str) -> None:
        await self._put("set_string", key, value, is_list=False)

    async def remove(self, key: str) -> None:
        async with self._session("remove", key) as session:
            await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))

    async def get_string_list(self, key: str) -> list[str]:
        entry = await self._get("get_string_list", key)
        if entry is None or not entry.is_list:
            return []
        try:
            values = json.loads(entry.value)
        except ValueError as e:
            raise StoreError("get_string_list", key, e) from e
        return [str(value) for value in values]

    async def set_string_list(self, key: str, values: list[str]) -> None:
        await self._put("set_string_list", key, json.dumps(list(values)), is_list=True)

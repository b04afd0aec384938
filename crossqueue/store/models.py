"""
SQLAlchemy database models.
Defines the key-value table backing the SQL durable store.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class KeyValueEntry(Base):
    """
    One durable store entry.

    String values are stored as-is; string lists are stored as a JSON array
    with ``is_list`` set so reads can tell the two apart.
    """

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(
        String(512),
        primary_key=True,
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    is_list: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry(key={self.key!r}, is_list={self.is_list})>"

"""
Message codecs.

A codec converts between the JSON-compatible records the queue persists and
the typed messages handed to observers. Both directions must be pure; a
failing decode raises DecodeError so the engine can skip the record.
"""

from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from crossqueue.errors import DecodeError
from crossqueue.types.message import Record

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class MessageCodec(Protocol[T]):
    """Converts between persisted records and typed messages."""

    def decode(self, record: Record) -> T:
        ...

    def encode(self, message: T) -> Record:
        ...


class DictCodec:
    """Identity codec for queues that work with plain records."""

    def decode(self, record: Record) -> Record:
        return dict(record)

    def encode(self, message: Record) -> Record:
        return dict(message)


class ModelCodec(Generic[M]):
    """
    Codec backed by a Pydantic model.

    Decoding validates the record against the model; encoding dumps it in JSON
    mode so datetimes, UUIDs and enums survive the store round trip.
    """

    def __init__(self, model: type[M]):
        self.model = model

    def decode(self, record: Record) -> M:
        try:
            return self.model.model_validate(record)
        except ValidationError as e:
            raise DecodeError(_record_id(record), str(e)) from e

    def encode(self, message: M) -> Record:
        return message.model_dump(mode="json")


def _record_id(record: Any) -> str | None:
    if isinstance(record, dict):
        value = record.get("id")
        return None if value is None else str(value)
    return None

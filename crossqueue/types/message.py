"""
Message record definitions and identity helpers.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from crossqueue.constants import ID_FIELDS
from crossqueue.errors import InvalidMessageError

# A message as it travels through the store and the notification channel
Record = dict[str, Any]


def encode_record(record: Mapping[str, Any]) -> str:
    """
    Encode a record as compact JSON for the pending set.

    Raises:
        InvalidMessageError: If the record is not JSON serializable.
    """
    try:
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise InvalidMessageError(f"Record is not JSON serializable: {e}") from e


def decode_record(raw: str) -> Record:
    """
    Decode a JSON string from the pending set into a record.

    Raises:
        ValueError: If the string is not JSON or not a JSON object.
    """
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError(f"Expected a JSON object, got {type(value).__name__}")
    return value


def extract_id(record: Mapping[str, Any]) -> str:
    """
    Extract the unique identifier of a record.

    Checks the ``id`` then ``messageId`` fields. Records carrying neither get a
    deterministic SHA-256 digest of their canonical JSON encoding, so the same
    content always maps to the same identifier across processes.

    Args:
        record: The message record.

    Returns:
        The non-empty message identifier.

    Raises:
        InvalidMessageError: If the record is not a mapping or cannot be hashed.
    """
    if not isinstance(record, Mapping):
        raise InvalidMessageError(f"Expected a mapping, got {type(record).__name__}")

    for field in ID_FIELDS:
        value = record.get(field)
        if value is not None and str(value) != "":
            return str(value)

    try:
        canonical = json.dumps(record, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise InvalidMessageError(f"Cannot derive id from record: {e}") from e
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

"""
Type definitions for the queue.
Contains message records, identity helpers and message codecs.
"""

from crossqueue.types.codec import (
    DictCodec,
    MessageCodec,
    ModelCodec,
)
from crossqueue.types.message import (
    Record,
    decode_record,
    encode_record,
    extract_id,
)

__all__ = [
    # Message types
    "Record",
    "extract_id",
    "encode_record",
    "decode_record",
    # Codecs
    "MessageCodec",
    "DictCodec",
    "ModelCodec",
]

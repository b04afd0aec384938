"""
Exception types raised by the queue.

Store failures propagate to the caller of the public operation that triggered
them. Decode failures are recovered locally by the engine. Duplicate delivery
is never an error.
"""


class QueueError(Exception):
    """Base class for all queue errors."""


class ConfigurationError(QueueError, ValueError):
    """Raised for invalid construction parameters, e.g. a non-positive capacity."""


class StoreError(QueueError):
    """Raised when the durable store is unavailable or an operation on it fails."""

    def __init__(self, operation: str, key: str, cause: BaseException | None = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        message = f"Store {operation} failed for key {key!r}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DecodeError(QueueError):
    """Raised when a persisted or delivered record cannot be decoded."""

    def __init__(self, message_id: str | None, reason: str):
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Failed to decode message {message_id!r}: {reason}")


class InvalidMessageError(QueueError):
    """Raised when a record is not a mapping or carries no usable identifier."""


class ChannelNotInitializedError(QueueError):
    """Raised by send_by_name when no engine was ever created for the channel."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Queue not initialized for {channel}")

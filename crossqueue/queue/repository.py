"""
Pending and acknowledged set persistence.

Translates the queue's two durable collections to and from the string
shapes the durable store understands:

- pending set: one JSON object ``id -> JSON-encoded record`` under
  ``_queue_<channel>``
- acknowledged set: a string list of ids under ``_acked_<channel>``

Every mutation here is a whole-collection read-modify-write. Callers must
serialize mutations for a channel; writers in other processes can still
overwrite each other (last writer wins).
"""

import json
import logging

from crossqueue.constants import ACKED_KEY_PREFIX, PENDING_KEY_PREFIX
from crossqueue.store.base import DurableStore

logger = logging.getLogger(__name__)


class PendingRepository:
    """
    Repository for one channel's pending and acknowledged sets.

    Implements:
    - Upsert of pending records by id
    - Acknowledgment bookkeeping with bounded tombstones
    - Reconciliation of pending against acknowledged (garbage collection)
    """

    def __init__(self, store: DurableStore, channel: str):
        """
        Initialize the repository.

        Args:
            store: The durable store.
            channel: The channel name the keys are derived from.
        """
        self._store = store
        self.channel = channel
        self.pending_key = f"{PENDING_KEY_PREFIX}{channel}"
        self.acked_key = f"{ACKED_KEY_PREFIX}{channel}"
        self.depth = 0

    async def load_pending(self) -> dict[str, str]:
        """
        Load the pending set.

        An absent or unreadable map is treated as empty so a corrupt value
        cannot wedge the channel; the next write replaces it. Entries without
        an id or with a non-string payload are dropped and logged.

        Returns:
            Mapping of message id to encoded record, in insertion order.
        """
        pending = await self._read_pending()
        self.depth = len(pending)
        return pending

    async def _read_pending(self) -> dict[str, str]:
        raw = await self._store.get_string(self.pending_key)
        if raw is None:
            return {}
        try:
            value = json.loads(raw)
        except ValueError:
            logger.error(
                "Discarding unreadable pending set",
                extra={"channel": self.channel},
            )
            return {}
        if not isinstance(value, dict):
            logger.error(
                "Discarding pending set with unexpected shape",
                extra={"channel": self.channel},
            )
            return {}

        pending = {str(k): v for k, v in value.items() if k and isinstance(v, str)}
        dropped = [k for k in value if k not in pending]
        if dropped:
            logger.error(
                "Discarding malformed pending entries",
                extra={"channel": self.channel, "message_ids": dropped},
            )
        return pending

    async def save_pending(self, pending: dict[str, str]) -> None:
        await self._store.set_string(self.pending_key, json.dumps(pending))
        self.depth = len(pending)

    async def load_acked(self) -> list[str]:
        return await self._store.get_string_list(self.acked_key)

    async def save_acked(self, acked: list[str]) -> None:
        await self._store.set_string_list(self.acked_key, acked)

    async def upsert(self, message_id: str, encoded: str) -> bool:
        """
        Insert or overwrite one pending record.

        Returns:
            True if the id was not pending before.
        """
        pending = await self.load_pending()
        created = message_id not in pending
        pending[message_id] = encoded
        await self.save_pending(pending)
        return created

    async def acknowledge(self, message_id: str) -> bool:
        """
        Remove an id from the pending set and record it as acknowledged.

        Acknowledging an id that is not pending changes nothing.

        Returns:
            True if the id was pending and is now acknowledged.
        """
        pending = await self.load_pending()
        if message_id not in pending:
            return False

        acked = await self.load_acked()
        if message_id not in acked:
            acked.append(message_id)
            await self.save_acked(acked)

        del pending[message_id]
        await self.save_pending(pending)
        return True

    async def collect(self, retention: int) -> int:
        """
        Purge acknowledged ids from the pending set.

        Afterwards the acknowledged list is trimmed to the ``retention`` most
        recent ids.

        Args:
            retention: Number of acknowledged ids to keep as tombstones.

        Returns:
            Number of pending entries removed.
        """
        pending = await self.load_pending()
        acked = await self.load_acked()
        if not acked:
            return 0

        acked_ids = set(acked)
        survivors = {k: v for k, v in pending.items() if k not in acked_ids}
        purged = len(pending) - len(survivors)
        if purged:
            await self.save_pending(survivors)

        if len(acked) > retention:
            await self.save_acked(acked[len(acked) - retention:])

        return purged

    async def clear(self) -> None:
        """Erase both sets."""
        await self._store.remove(self.pending_key)
        await self._store.remove(self.acked_key)
        self.depth = 0

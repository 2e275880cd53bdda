"""Bounded record of message ids that were already handled in earlier runs."""

from __future__ import annotations

import json
import logging
from typing import Iterable

from newsletter_brief.errors import PersistenceCorruptError
from newsletter_brief.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

MAX_STORED_IDS = 500
PROCESSED_IDS_KEY = "PROCESSED_MESSAGE_IDS"


class DedupLedger:
    """Sliding window over the most recently processed message ids.

    Insertion order is processing order and is only used for eviction;
    membership checks go through a set.
    """

    def __init__(self, ids: Iterable[str] = (), max_size: int = MAX_STORED_IDS) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._order: list[str] = []
        self._members: set[str] = set()
        self.record(ids)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._members

    def __len__(self) -> int:
        return len(self._order)

    def contains(self, message_id: str) -> bool:
        return message_id in self._members

    def ids(self) -> list[str]:
        """Ids oldest first."""
        return list(self._order)

    def record(self, message_ids: Iterable[str]) -> None:
        """Append unseen ids, then evict the oldest beyond max_size."""
        for message_id in message_ids:
            if message_id in self._members:
                continue
            self._order.append(message_id)
            self._members.add(message_id)

        overflow = len(self._order) - self.max_size
        if overflow > 0:
            evicted = self._order[:overflow]
            self._order = self._order[overflow:]
            self._members.difference_update(evicted)

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        key: str = PROCESSED_IDS_KEY,
        max_size: int = MAX_STORED_IDS,
    ) -> DedupLedger:
        """Load the ledger; absent or corrupt payloads give an empty ledger."""
        payload = store.get(key)
        if not payload:
            return cls(max_size=max_size)

        try:
            ids = decode_ids(payload)
        except PersistenceCorruptError as exc:
            logger.warning(f"Processed-id ledger under {key!r} is corrupt, starting empty: {exc}")
            return cls(max_size=max_size)

        return cls(ids, max_size=max_size)

    def save(self, store: KeyValueStore, key: str = PROCESSED_IDS_KEY) -> None:
        store.set(key, json.dumps(self._order))


def decode_ids(payload: str) -> list[str]:
    """Decode a persisted id list, raising on anything but a JSON list of strings."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise PersistenceCorruptError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise PersistenceCorruptError(f"expected a list, got {type(data).__name__}")
    if not all(isinstance(item, str) for item in data):
        raise PersistenceCorruptError("list contains non-string ids")
    return data

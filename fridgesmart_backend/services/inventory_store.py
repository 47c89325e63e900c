"""Ordered inventory collection mirrored to blob storage."""

from __future__ import annotations

import json
import logging
import threading
from json import JSONDecodeError
from typing import Iterable

from fridgesmart_backend.config import INVENTORY_STORAGE_KEY
from fridgesmart_backend.services.inventory import (
    InventoryFormatError,
    InventoryItem,
)
from fridgesmart_backend.services.storage import BlobStorage, StorageError

logger = logging.getLogger(__name__)


def serialize_items(items: Iterable[InventoryItem]) -> str:
    return json.dumps([item.to_dict() for item in items])


def deserialize_items(raw: str) -> list[InventoryItem]:
    """Parse a persisted blob; raises ``InventoryFormatError`` on any mismatch."""

    try:
        payload = json.loads(raw)
    except JSONDecodeError as exc:
        raise InventoryFormatError("inventory blob is not valid JSON") from exc
    if not isinstance(payload, list):
        raise InventoryFormatError("inventory blob must be a JSON array")
    return [InventoryItem.from_dict(entry) for entry in payload]


class InventoryStore:
    """Keep the inventory in memory and persist it after every change.

    Insertion order is preserved. Call :meth:`load` once at start-up.
    """

    def __init__(
        self, backend: BlobStorage, *, key: str = INVENTORY_STORAGE_KEY
    ) -> None:
        self._backend = backend
        self._key = key
        self._items: list[InventoryItem] = []
        self._lock = threading.RLock()

    def load(self) -> list[InventoryItem]:
        """Read the persisted blob; unreadable data leaves the store empty."""

        try:
            raw = self._backend.read(self._key)
        except StorageError:
            logger.exception("failed to read persisted inventory; starting empty")
            raw = None

        items: list[InventoryItem] = []
        if raw:
            try:
                items = deserialize_items(raw)
            except InventoryFormatError as exc:
                logger.warning(
                    "discarding malformed persisted inventory: %s",
                    exc,
                    extra={"storage_key": self._key},
                )
                items = []

        with self._lock:
            self._items = items
        logger.info("loaded inventory", extra={"item_count": len(items)})
        return list(items)

    def items(self) -> list[InventoryItem]:
        with self._lock:
            return list(self._items)

    def get(self, item_id: str) -> InventoryItem | None:
        with self._lock:
            for item in self._items:
                if item.id == item_id:
                    return item
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def append(self, items: Iterable[InventoryItem]) -> None:
        """Add items to the end, keeping their order."""

        with self._lock:
            self._commit([*self._items, *items])

    def replace(self, items: Iterable[InventoryItem]) -> None:
        """Swap the whole collection, as demo mode does."""

        with self._lock:
            self._commit(list(items))

    def remove(self, item_id: str) -> bool:
        """Delete the item with ``item_id``; returns False when it is absent."""

        with self._lock:
            remaining = [item for item in self._items if item.id != item_id]
            if len(remaining) == len(self._items):
                return False
            self._commit(remaining)
            return True

    def persist(self) -> None:
        """Serialize the full collection to the backend."""

        with self._lock:
            self._backend.write(self._key, serialize_items(self._items))

    def _commit(self, items: list[InventoryItem]) -> None:
        # Memory only changes once the backend accepted the new collection.
        self._backend.write(self._key, serialize_items(items))
        self._items = items

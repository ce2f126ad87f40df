"""Classification Record Store: capped, most-recent-first history log."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from pydantic import TypeAdapter

from eco_sorter.config import HISTORY_KEY, MAX_HISTORY
from eco_sorter.errors import CorruptPayloadError, KeyNotFoundError, StorageError
from eco_sorter.io.codec import decode, encode
from eco_sorter.schemas.record import ClassificationRecord
from eco_sorter.storage.base import PersistentStore

_RECORDS = TypeAdapter(list[ClassificationRecord])


def filter_by_category(
    records: Sequence[ClassificationRecord], category: str
) -> list[ClassificationRecord]:
    """Records whose category matches exactly, in input order. No I/O."""
    return [r for r in records if r.category == category]


class ClassificationHistory:
    """Append-only log of classification events, capped at ``max_items``.

    Every append rewrites the whole persisted sequence.
    """

    def __init__(
        self,
        store: PersistentStore,
        key: str = HISTORY_KEY,
        max_items: int = MAX_HISTORY,
    ) -> None:
        self.store = store
        self.key = key
        self.max_items = max_items

    async def load(self) -> list[ClassificationRecord]:
        """Strict read.

        Raises:
            KeyNotFoundError: No history has been persisted yet.
            CorruptPayloadError: The stored value cannot be parsed.
            StorageError: The store failed.
        """
        payload = await self.store.get(self.key)
        if payload is None:
            raise KeyNotFoundError(self.key)
        return decode(payload, _RECORDS, self.key)

    async def list_records(self) -> list[ClassificationRecord]:
        """Most-recent-first history; empty when absent or unreadable."""
        try:
            return await self.load()
        except KeyNotFoundError:
            return []
        except StorageError as e:
            logger.warning(f"Treating unreadable history as empty: {e}")
            return []

    async def _load_for_update(self) -> list[ClassificationRecord]:
        """Strict read for a rewrite. Only absent or corrupt history counts as empty."""
        try:
            return await self.load()
        except KeyNotFoundError:
            return []
        except CorruptPayloadError as e:
            logger.warning(f"Overwriting corrupt history: {e}")
            return []

    async def append(self, record: ClassificationRecord) -> list[ClassificationRecord]:
        """Insert ``record`` at the head and drop the oldest beyond the cap.

        Returns the persisted sequence.

        Raises:
            StorageError: The read or the write failed. Nothing is written
                when the read fails.
        """
        async with self.store.lock(self.key):
            history = await self._load_for_update()
            history.insert(0, record)
            if len(history) > self.max_items:
                logger.debug(
                    f"History over cap: evicting {len(history) - self.max_items} "
                    "oldest record(s)"
                )
                del history[self.max_items :]
            await self.store.set(self.key, encode(history))
        return history

    async def clear(self) -> None:
        async with self.store.lock(self.key):
            await self.store.remove(self.key)

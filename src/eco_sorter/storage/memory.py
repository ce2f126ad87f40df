"""In-process dict-backed store."""

from __future__ import annotations

from loguru import logger

from eco_sorter.storage.base import PersistentStore
from eco_sorter.utils.hydra import register


@register(group="store", name="ram")
class InMemoryStore(PersistentStore):
    """Keeps values in a Python dict for zero-overhead reads.

    Contents are lost when the process exits.
    """

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def close(self) -> None:
        logger.debug(f"Dropping in-memory store ({len(self._data)} keys)")
        self._data.clear()

    def __repr__(self) -> str:
        return f"InMemoryStore(keys={sorted(self._data)})"

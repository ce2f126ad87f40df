"""Abstract async key/value store with per-key write serialization."""

from __future__ import annotations

import asyncio
import weakref
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class PersistentStore(ABC):
    """Durable storage addressed by string keys.

    Subclasses implement ``get``/``set``/``remove`` and raise
    :class:`~eco_sorter.errors.StorageError` when the backend fails.
    A missing key is not an error here: ``get`` returns ``None``.

    Callers that read, transform and write back a value must hold
    :meth:`lock` for that key across the whole sequence, otherwise two
    concurrent writers can lose an update. Locks are kept per event loop,
    so a store can be reused across successive ``asyncio.run`` calls.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[str, asyncio.Lock]
        ] = weakref.WeakKeyDictionary()

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or ``None`` if nothing is stored."""

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``. Removing a missing key is a no-op."""

    async def close(self) -> None:
        """Release backend resources."""

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        """Serialize read-modify-write sequences on ``key``."""
        loop_locks = self._locks.setdefault(asyncio.get_running_loop(), {})
        key_lock = loop_locks.setdefault(key, asyncio.Lock())
        async with key_lock:
            yield

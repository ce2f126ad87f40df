"""SQLite-backed key/value store.

All SQL runs on one dedicated worker thread, so statements from concurrent
coroutines execute one at a time in submission order. Per-key locking of
read-modify-write sequences is still the caller's job (see
:meth:`PersistentStore.lock`).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from loguru import logger

from eco_sorter.errors import StorageError
from eco_sorter.storage.base import PersistentStore
from eco_sorter.utils.hydra import register

__all__ = ["SQLiteStore"]

T = TypeVar("T")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------
_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv (
    key    TEXT PRIMARY KEY,
    value  BLOB NOT NULL
);
"""

_UPSERT = """
INSERT OR REPLACE INTO kv (key, value)
VALUES (?, ?);
"""

_SELECT = "SELECT value FROM kv WHERE key = ?;"

_DELETE = "DELETE FROM kv WHERE key = ?;"


@register(group="store", name="sqlite", db_path="eco_sorter.db")
class SQLiteStore(PersistentStore):
    """Persist values in a single ``kv`` table.

    Parameters
    ----------
    db_path:
        Location of the SQLite database. Parent directories are created.
    """

    def __init__(self, db_path: str | Path) -> None:
        super().__init__()
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="eco-sorter-sqlite"
        )
        self._closed = False

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    @property
    def _connection(self) -> sqlite3.Connection:
        """Lazily open the connection (WAL mode) on the worker thread."""
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self._db_path),
                check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn.execute(_CREATE_TABLE)
            self._conn.commit()
            logger.debug(f"Opened SQLite store at {self._db_path}")
        return self._conn

    async def _run(self, fn: Callable[[], T], action: str, key: str) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, fn)
        except (sqlite3.Error, RuntimeError) as e:
            # RuntimeError: the worker was shut down by close()
            raise StorageError(
                f"SQLite {action} failed for key '{key}' in {self._db_path}: {e}"
            ) from e

    # ------------------------------------------------------------------
    # Store interface
    # ------------------------------------------------------------------
    async def get(self, key: str) -> bytes | None:
        def _get() -> bytes | None:
            row = self._connection.execute(_SELECT, (key,)).fetchone()
            return None if row is None else bytes(row[0])

        return await self._run(_get, "read", key)

    async def set(self, key: str, value: bytes) -> None:
        def _set() -> None:
            conn = self._connection
            conn.execute(_UPSERT, (key, value))
            conn.commit()

        await self._run(_set, "write", key)

    async def remove(self, key: str) -> None:
        def _remove() -> None:
            conn = self._connection
            conn.execute(_DELETE, (key,))
            conn.commit()

        await self._run(_remove, "delete", key)

    async def close(self) -> None:
        """Close the SQLite connection and stop the worker thread."""
        if self._closed:
            return
        self._closed = True

        def _close() -> None:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, _close)
        self._executor.shutdown(wait=True)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def __repr__(self) -> str:
        return f"SQLiteStore(db={self._db_path})"

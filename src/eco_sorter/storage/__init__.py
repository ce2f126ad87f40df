"""Persistent key/value stores."""

from eco_sorter.config import StoreConfig
from eco_sorter.storage.base import PersistentStore
from eco_sorter.storage.memory import InMemoryStore
from eco_sorter.storage.sqlite import SQLiteStore


def build_store(config: StoreConfig) -> PersistentStore:
    """Factory: build a store from config."""
    if config.backend == "ram":
        return InMemoryStore()
    if config.backend == "sqlite":
        if config.db_path is None:
            raise ValueError("sqlite backend requires db_path to be set")
        return SQLiteStore(config.db_path)
    raise ValueError(f"Unknown store backend: {config.backend}")


__all__ = [
    "InMemoryStore",
    "PersistentStore",
    "SQLiteStore",
    "build_store",
]

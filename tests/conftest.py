"""Shared pytest fixtures for eco_sorter tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path

import pytest

from eco_sorter.schemas.record import ClassificationRecord
from eco_sorter.storage import InMemoryStore, SQLiteStore

from doubles import FailingWriteStore, FlakyReadStore, RecordFactory


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def sqlite_store(tmp_path: Path) -> Iterator[SQLiteStore]:
    s = SQLiteStore(tmp_path / "eco_sorter.db")
    yield s
    asyncio.run(s.close())


@pytest.fixture()
def failing_store() -> FailingWriteStore:
    return FailingWriteStore()


@pytest.fixture()
def flaky_store() -> FlakyReadStore:
    return FlakyReadStore()


@pytest.fixture()
def make_record() -> RecordFactory:
    """Factory for records with sensible defaults and a unique image_ref."""
    counter = iter(range(1_000_000))

    def _make(
        confidence: float = 0.85,
        category: str = "Plastic",
        image_ref: str | None = None,
    ) -> ClassificationRecord:
        n = next(counter)
        return ClassificationRecord(
            image_ref=image_ref or f"file:///captures/img_{n:04d}.jpg",
            category=category,
            confidence=confidence,
            all_probabilities=(confidence, 1.0 - confidence),
        )

    return _make

"""Training Sample Curator.

Only high-confidence predictions are admitted so incremental training does
not reinforce the model's own mistakes. The set is capped; the oldest
samples are evicted first, identically from both paired arrays.
"""

from __future__ import annotations

from loguru import logger
from pydantic import TypeAdapter

from eco_sorter.config import (
    CONFIDENCE_THRESHOLD_HIGH,
    MAX_TRAINING_SAMPLES,
    TRAINING_DATA_KEY,
)
from eco_sorter.errors import CorruptPayloadError, KeyNotFoundError, StorageError
from eco_sorter.io.codec import decode, encode
from eco_sorter.schemas.record import ClassificationRecord
from eco_sorter.schemas.training import TrainingSampleSet
from eco_sorter.storage.base import PersistentStore

_SAMPLE_SET = TypeAdapter(TrainingSampleSet)


class TrainingSampleCurator:
    """Owns the persisted :class:`TrainingSampleSet`; nothing else writes it."""

    def __init__(
        self,
        store: PersistentStore,
        key: str = TRAINING_DATA_KEY,
        max_samples: int = MAX_TRAINING_SAMPLES,
        min_confidence: float = CONFIDENCE_THRESHOLD_HIGH,
    ) -> None:
        self.store = store
        self.key = key
        self.max_samples = max_samples
        self.min_confidence = min_confidence

    async def load(self) -> TrainingSampleSet:
        """Strict read; raises KeyNotFoundError / CorruptPayloadError / StorageError."""
        payload = await self.store.get(self.key)
        if payload is None:
            raise KeyNotFoundError(self.key)
        return decode(payload, _SAMPLE_SET, self.key)

    async def get(self) -> TrainingSampleSet:
        """Current set, or an empty paired set when absent or unreadable."""
        try:
            return await self.load()
        except KeyNotFoundError:
            return TrainingSampleSet()
        except StorageError as e:
            logger.warning(f"Treating unreadable training data as empty: {e}")
            return TrainingSampleSet()

    async def _load_for_update(self) -> TrainingSampleSet:
        try:
            return await self.load()
        except KeyNotFoundError:
            return TrainingSampleSet()
        except CorruptPayloadError as e:
            logger.warning(f"Overwriting corrupt training data: {e}")
            return TrainingSampleSet()

    def admits(self, record: ClassificationRecord) -> bool:
        return record.confidence >= self.min_confidence

    async def maybe_add(self, record: ClassificationRecord) -> bool:
        """Append the record's (image_ref, category) if confident enough.

        Returns True when the sample was admitted.

        Raises:
            StorageError: The read or the write failed.
        """
        if not self.admits(record):
            return False

        async with self.store.lock(self.key):
            samples = await self._load_for_update()
            samples = samples.append(record.image_ref, record.category, self.max_samples)
            await self.store.set(self.key, encode(samples))

        logger.debug(
            f"Curated sample {record.image_ref!r} as '{record.category}' "
            f"({len(samples)}/{self.max_samples})"
        )
        return True

    async def clear(self) -> None:
        async with self.store.lock(self.key):
            await self.store.remove(self.key)

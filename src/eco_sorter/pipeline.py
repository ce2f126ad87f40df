"""Capture-to-storage orchestration.

A classification flows from the engine into the history (always), then
into the curated training set (only when confident), and low-confidence
captures are additionally handed to the uploader without waiting for it.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from eco_sorter.config import CONFIDENCE_THRESHOLD_LOW
from eco_sorter.curation import TrainingSampleCurator
from eco_sorter.errors import StorageError
from eco_sorter.history import ClassificationHistory
from eco_sorter.inference.base import BaseClassificationEngine
from eco_sorter.schemas.record import ClassificationOutput, ClassificationRecord
from eco_sorter.schemas.storage import StorageStats, SyncReceipt, UploadReceipt
from eco_sorter.uploads import BaseUploader


class ClassificationPipeline:
    def __init__(
        self,
        engine: BaseClassificationEngine,
        history: ClassificationHistory,
        curator: TrainingSampleCurator,
        uploader: BaseUploader,
        upload_below: float = CONFIDENCE_THRESHOLD_LOW,
    ) -> None:
        self.engine = engine
        self.history = history
        self.curator = curator
        self.uploader = uploader
        self.upload_below = upload_below
        self._pending: set[asyncio.Task[UploadReceipt]] = set()

    async def process_image(self, image_ref: str) -> ClassificationRecord:
        """Classify, persist, and upload the capture if the model was unsure."""
        output = await self.engine.classify(image_ref)
        record = ClassificationRecord.from_output(image_ref, output)
        await self.save_classification(record)
        if output.confidence < self.upload_below:
            self._submit_upload(image_ref, output)
        return record

    async def save_classification(self, record: ClassificationRecord) -> bool:
        """Append to history, then offer to the curator. False if a write failed."""
        try:
            await self.history.append(record)
            await self.curator.maybe_add(record)
        except StorageError as e:
            logger.error(f"Error saving classification of {record.image_ref!r}: {e}")
            return False
        return True

    def _submit_upload(self, image_ref: str, output: ClassificationOutput) -> None:
        task = asyncio.create_task(self._upload(image_ref, output))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _upload(
        self, image_ref: str, output: ClassificationOutput
    ) -> UploadReceipt:
        try:
            return await self.uploader.upload(image_ref, output)
        except Exception as e:
            logger.error(f"Error uploading {image_ref!r} to server: {e}")
            return UploadReceipt(success=False, image_ref=image_ref, error=str(e))

    async def drain_uploads(self) -> list[UploadReceipt]:
        """Wait for uploads still in flight."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))

    async def storage_stats(self) -> StorageStats:
        history = await self.history.list_records()
        samples = await self.curator.get()
        return StorageStats(
            total_classifications=len(history),
            training_data_size=len(samples),
            categories=tuple(dict.fromkeys(r.category for r in history)),
        )

    async def clear_all_data(self) -> bool:
        """Remove history and curated samples. False if the store failed."""
        try:
            await self.history.clear()
            await self.curator.clear()
        except StorageError as e:
            logger.error(f"Error clearing data: {e}")
            return False
        logger.info("All data cleared")
        return True

    async def sync_with_cloud(self) -> SyncReceipt:
        history = await self.history.list_records()
        try:
            return await self.uploader.sync(history)
        except Exception as e:
            logger.error(f"Error syncing with cloud: {e}")
            return SyncReceipt(success=False, error=str(e))

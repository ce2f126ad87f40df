"""Supplementary-training uploads and history sync.

Remote endpoints are not part of the device core; :class:`SimulatedUploader`
logs and records what would have been sent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from loguru import logger

from eco_sorter.schemas.record import ClassificationOutput, ClassificationRecord
from eco_sorter.schemas.storage import SyncReceipt, UploadReceipt


class BaseUploader(ABC):
    """Destination for low-confidence captures and history syncs."""

    @abstractmethod
    async def upload(
        self, image_ref: str, output: ClassificationOutput
    ) -> UploadReceipt:
        """Send one capture for server-side classification and training."""

    @abstractmethod
    async def sync(self, records: Sequence[ClassificationRecord]) -> SyncReceipt:
        """Mirror the local history to cloud storage."""


class SimulatedUploader(BaseUploader):
    """Records submissions in memory instead of calling a server."""

    def __init__(self) -> None:
        self.uploaded: list[tuple[str, str, float]] = []
        self.synced: int = 0

    async def upload(
        self, image_ref: str, output: ClassificationOutput
    ) -> UploadReceipt:
        logger.info(
            f"Uploading {image_ref!r} ({output.category} @ {output.confidence:.2f}) "
            "for supplementary training (simulated)"
        )
        self.uploaded.append((image_ref, output.category, output.confidence))
        return UploadReceipt(
            success=True,
            image_ref=image_ref,
            message="Uploaded to server for improved classification",
        )

    async def sync(self, records: Sequence[ClassificationRecord]) -> SyncReceipt:
        self.synced += len(records)
        logger.info(f"Synced {len(records)} items to cloud (simulated)")
        return SyncReceipt(success=True, synced=len(records))

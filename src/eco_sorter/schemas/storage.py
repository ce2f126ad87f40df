"""Storage summary and upload receipt schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from eco_sorter.schemas.record import utc_now_iso


class StorageStats(BaseModel, frozen=True):
    """Counts of what is persisted on the device."""

    total_classifications: int = 0
    training_data_size: int = 0
    categories: tuple[str, ...] = ()


class UploadReceipt(BaseModel, frozen=True):
    """Acknowledgement for a single supplementary-training upload."""

    success: bool
    image_ref: str
    message: str = ""
    error: str | None = None
    submitted_at: str = Field(default_factory=utc_now_iso)


class SyncReceipt(BaseModel, frozen=True):
    """Acknowledgement for a history sync."""

    success: bool
    synced: int = 0
    error: str | None = None

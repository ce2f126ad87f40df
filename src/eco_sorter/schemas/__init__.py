"""Persisted and exchanged schemas."""

from eco_sorter.schemas.leaderboard import LeaderboardEntry, UserStats
from eco_sorter.schemas.record import (
    ClassificationOutput,
    ClassificationRecord,
    utc_now_iso,
)
from eco_sorter.schemas.storage import StorageStats, SyncReceipt, UploadReceipt
from eco_sorter.schemas.training import (
    RetrainingDecision,
    RetrainingSchedule,
    TrainingOutcome,
    TrainingProgress,
    TrainingSampleSet,
    TrainingStats,
    TrainResult,
)

__all__ = [
    "ClassificationOutput",
    "ClassificationRecord",
    "LeaderboardEntry",
    "RetrainingDecision",
    "RetrainingSchedule",
    "StorageStats",
    "SyncReceipt",
    "TrainResult",
    "TrainingOutcome",
    "TrainingProgress",
    "TrainingSampleSet",
    "TrainingStats",
    "UploadReceipt",
    "UserStats",
    "utc_now_iso",
]

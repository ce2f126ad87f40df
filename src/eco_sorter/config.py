"""Fixed lifecycle constants and pydantic frozen infrastructure config."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, model_validator

# Confidence thresholds
CONFIDENCE_THRESHOLD_HIGH = 0.8  # admission to the curated training set
CONFIDENCE_THRESHOLD_MEDIUM = 0.7  # accurate scan, medium points bonus
CONFIDENCE_THRESHOLD_LOW = 0.7  # below this the capture is uploaded
CONFIDENCE_THRESHOLD_TOP = 0.9  # high points bonus

# Storage limits
MAX_HISTORY = 100
MAX_TRAINING_SAMPLES = 500

# Training / retraining
MIN_TRAINING_SAMPLES = 10
RETRAINING_NEW_SAMPLES_THRESHOLD = 50
RETRAINING_IMBALANCE_RATIO = 3
DEFAULT_RETRAINING_INTERVAL = timedelta(hours=24)

# Points system
POINTS_BASE = 10
POINTS_HIGH_CONFIDENCE = 20
POINTS_MEDIUM_CONFIDENCE = 10

# Label space of the bundled waste classifier
WASTE_CATEGORIES = ("Plastic", "Paper", "Metal", "Glass", "Organic", "Other")

# Logical storage keys
HISTORY_KEY = "classification_history"
TRAINING_DATA_KEY = "training_data"
RANKINGS_KEY = "user_rankings"
USER_KEY = "user"


class StoreConfig(BaseModel, frozen=True):
    """Configuration for the persistent key/value store.

    Modes:
        ram: Process-local dict, lost on exit (tests, demos).
        sqlite: Single-table SQLite database at ``db_path``.
    """

    backend: Literal["ram", "sqlite"] = "ram"
    db_path: str | None = None

    @model_validator(mode="after")
    def _sqlite_requires_path(self) -> StoreConfig:
        if self.backend == "sqlite" and not self.db_path:
            raise ValueError("sqlite backend requires db_path to be set")
        return self

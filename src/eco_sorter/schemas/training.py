"""Curated training set and retraining controller schemas."""

from __future__ import annotations

from collections import Counter
from typing import Literal

from pydantic import BaseModel, model_validator

TrainingStatus = Literal["preparing", "training", "complete"]


class TrainingSampleSet(BaseModel, frozen=True):
    """Paired (image reference, label) samples.

    ``inputs[i]`` always corresponds to ``labels[i]``.
    """

    inputs: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _paired_lengths(self) -> TrainingSampleSet:
        if len(self.inputs) != len(self.labels):
            raise ValueError(
                f"inputs and labels must be paired, got {len(self.inputs)} "
                f"inputs and {len(self.labels)} labels"
            )
        return self

    def __len__(self) -> int:
        return len(self.inputs)

    def append(self, image_ref: str, label: str, cap: int) -> TrainingSampleSet:
        """Return a new set with the sample appended, keeping the newest ``cap``."""
        inputs = (*self.inputs, image_ref)
        labels = (*self.labels, label)
        if len(inputs) > cap:
            inputs = inputs[-cap:]
            labels = labels[-cap:]
        return TrainingSampleSet(inputs=inputs, labels=labels)

    def category_counts(self) -> dict[str, int]:
        """Occurrences of each label, in first-seen order."""
        return dict(Counter(self.labels))


class RetrainingDecision(BaseModel, frozen=True):
    """Whether the model should be retrained, with the reasons behind it."""

    needs_retraining: bool
    has_enough_new_samples: bool
    is_imbalanced: bool
    total_samples: int = 0
    category_counts: dict[str, int] = {}


class TrainResult(BaseModel, frozen=True):
    """What the classification engine reports after a training run."""

    success: bool
    final_loss: float | None = None
    final_accuracy: float | None = None
    error: str | None = None


class TrainingOutcome(BaseModel, frozen=True):
    """Result of a ``start_training`` request."""

    success: bool
    samples_count: int = 0
    final_loss: float | None = None
    final_accuracy: float | None = None
    error: str | None = None


class TrainingProgress(BaseModel, frozen=True):
    """Progress notification emitted while a training request runs."""

    status: TrainingStatus
    message: str


class TrainingStats(BaseModel, frozen=True):
    """Curated-set and engine summary for display."""

    total_samples: int
    category_counts: dict[str, int]
    model_ready: bool
    categories: tuple[str, ...] = ()


class RetrainingSchedule(BaseModel, frozen=True):
    """Next planned retraining time."""

    interval_seconds: float
    next_training: str

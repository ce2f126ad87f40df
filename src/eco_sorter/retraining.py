"""Retraining Trigger Evaluator and training controller."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from loguru import logger

from eco_sorter.config import (
    DEFAULT_RETRAINING_INTERVAL,
    MIN_TRAINING_SAMPLES,
    RETRAINING_IMBALANCE_RATIO,
    RETRAINING_NEW_SAMPLES_THRESHOLD,
)
from eco_sorter.curation import TrainingSampleCurator
from eco_sorter.inference.base import BaseClassificationEngine
from eco_sorter.schemas.training import (
    RetrainingDecision,
    RetrainingSchedule,
    TrainingOutcome,
    TrainingProgress,
    TrainingSampleSet,
    TrainingStats,
    TrainingStatus,
)
from eco_sorter.types import ProgressCallback


def evaluate_retraining(
    sample_set: TrainingSampleSet,
    new_samples_threshold: int = RETRAINING_NEW_SAMPLES_THRESHOLD,
    imbalance_ratio: float = RETRAINING_IMBALANCE_RATIO,
) -> RetrainingDecision:
    """Decide whether the curated set warrants retraining.

    Two independent reasons:
        volume: at least ``new_samples_threshold`` curated samples.
        imbalance: two or more labels present and the most frequent label
            occurs more than ``imbalance_ratio`` times the least frequent.

    Pure; an empty set yields a negative decision.
    """
    counts = sample_set.category_counts()
    has_enough = len(sample_set) >= new_samples_threshold
    is_imbalanced = (
        len(counts) > 1 and max(counts.values()) > min(counts.values()) * imbalance_ratio
    )
    return RetrainingDecision(
        needs_retraining=has_enough or is_imbalanced,
        has_enough_new_samples=has_enough,
        is_imbalanced=is_imbalanced,
        total_samples=len(sample_set),
        category_counts=counts,
    )


class RetrainingController:
    """Reads the curated set and drives the engine's ``train`` entry point."""

    def __init__(
        self,
        curator: TrainingSampleCurator,
        engine: BaseClassificationEngine,
        min_samples: int = MIN_TRAINING_SAMPLES,
    ) -> None:
        self.curator = curator
        self.engine = engine
        self.min_samples = min_samples

    async def needs_retraining(self) -> RetrainingDecision:
        return evaluate_retraining(await self.curator.get())

    async def training_stats(self) -> TrainingStats:
        samples = await self.curator.get()
        info = self.engine.info()
        return TrainingStats(
            total_samples=len(samples),
            category_counts=samples.category_counts(),
            model_ready=self.engine.is_ready(),
            categories=info.categories,
        )

    async def start_training(
        self, on_progress: ProgressCallback | None = None
    ) -> TrainingOutcome:
        """Train the engine on the curated set.

        Returns a failed outcome without touching the engine when fewer
        than ``min_samples`` samples are curated.
        """
        samples = await self.curator.get()
        count = len(samples)
        if count < self.min_samples:
            logger.info(
                f"Skipping training: {count} curated samples, need {self.min_samples}"
            )
            return TrainingOutcome(
                success=False,
                error=(
                    "Not enough training data. "
                    f"Need at least {self.min_samples} samples."
                ),
                samples_count=count,
            )

        _notify(on_progress, "preparing", "Preparing training data...")
        _notify(on_progress, "training", "Training model...")
        logger.info(f"Starting training on {count} curated samples")

        try:
            if not self.engine.is_ready():
                await self.engine.initialize()
            result = await self.engine.train(samples)
        except Exception as e:
            logger.exception(f"Training failed: {e}")
            return TrainingOutcome(success=False, error=str(e), samples_count=count)

        if not result.success:
            logger.error(f"Engine reported training failure: {result.error}")
            return TrainingOutcome(success=False, error=result.error, samples_count=count)

        _notify(on_progress, "complete", "Training completed!")
        logger.info(
            f"Training complete: loss={result.final_loss}, "
            f"accuracy={result.final_accuracy}"
        )
        return TrainingOutcome(
            success=True,
            samples_count=count,
            final_loss=result.final_loss,
            final_accuracy=result.final_accuracy,
        )

    def schedule_retraining(
        self,
        interval: timedelta = DEFAULT_RETRAINING_INTERVAL,
        now: datetime | None = None,
    ) -> RetrainingSchedule:
        """Compute the next retraining slot. No background task is started."""
        now = now or datetime.now(tz=UTC)
        next_training = now + interval
        logger.info(f"Next retraining scheduled for {next_training.isoformat()}")
        return RetrainingSchedule(
            interval_seconds=interval.total_seconds(),
            next_training=next_training.isoformat(),
        )


def _notify(
    on_progress: ProgressCallback | None,
    status: TrainingStatus,
    message: str,
) -> None:
    if on_progress is not None:
        on_progress(TrainingProgress(status=status, message=message))

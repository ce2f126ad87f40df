"""Abstract base class for classification engines."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from eco_sorter.schemas.record import ClassificationOutput
from eco_sorter.schemas.training import TrainingSampleSet, TrainResult


class EngineInfo(BaseModel, frozen=True):
    """Readiness and label space of an engine."""

    ready: bool
    categories: tuple[str, ...] = ()


class BaseClassificationEngine(ABC):
    """An image classifier that owns its own lifecycle.

    Each instance tracks its own readiness, so several engines (or test
    doubles) can coexist in one process. ``classify`` initializes lazily
    on first use.
    """

    @abstractmethod
    async def initialize(self) -> bool:
        """Load the model. Returns False if a fallback had to be used."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether :meth:`initialize` has completed."""

    @abstractmethod
    async def classify(self, image_ref: str) -> ClassificationOutput:
        """Classify the image at ``image_ref``.

        May return a degraded result rather than raising.
        """

    @abstractmethod
    async def train(self, sample_set: TrainingSampleSet) -> TrainResult:
        """Incrementally train on curated (image_ref, label) pairs."""

    @abstractmethod
    def info(self) -> EngineInfo:
        """Readiness and label space."""

"""Classification output and persisted classification record schemas."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with UTC offset."""
    return datetime.now(tz=UTC).isoformat()


class ClassificationOutput(BaseModel, frozen=True):
    """Result of classifying one image.

    ``confidence`` is treated as a plain float; degraded engine fallbacks
    may produce arbitrary values in [0, 1].
    """

    category: str
    confidence: float
    secondary_category: str | None = None
    secondary_confidence: float | None = None
    all_probabilities: tuple[float, ...] = ()


class ClassificationRecord(BaseModel, frozen=True):
    """One persisted classification event. Never mutated once created."""

    image_ref: str
    category: str
    confidence: float
    secondary_category: str | None = None
    secondary_confidence: float | None = None
    all_probabilities: tuple[float, ...] = ()
    timestamp: str = Field(default_factory=utc_now_iso)

    @classmethod
    def from_output(
        cls,
        image_ref: str,
        output: ClassificationOutput,
        timestamp: str | None = None,
    ) -> ClassificationRecord:
        """Stamp an engine output with its image reference and capture time."""
        return cls(
            image_ref=image_ref,
            timestamp=timestamp or utc_now_iso(),
            **output.model_dump(),
        )

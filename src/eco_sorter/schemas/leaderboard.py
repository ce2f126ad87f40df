"""Leaderboard schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from eco_sorter.schemas.record import utc_now_iso


class UserStats(BaseModel, frozen=True):
    """Aggregate derived from a user's classification history."""

    total_scans: int = 0
    accurate_scans: int = 0
    points: int = 0

    @classmethod
    def zero(cls) -> UserStats:
        return cls()


class LeaderboardEntry(BaseModel, frozen=True):
    """Per-user ranking row. ``joined_date`` never changes after creation."""

    username: str
    total_scans: int = 0
    accurate_scans: int = 0
    points: int = 0
    joined_date: str = Field(default_factory=utc_now_iso)
    last_updated: str = Field(default_factory=utc_now_iso)

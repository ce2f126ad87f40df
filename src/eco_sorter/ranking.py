"""Ranking Aggregator: points from history, merged into a persisted leaderboard."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from loguru import logger
from pydantic import TypeAdapter

from eco_sorter.config import (
    CONFIDENCE_THRESHOLD_MEDIUM,
    CONFIDENCE_THRESHOLD_TOP,
    POINTS_BASE,
    POINTS_HIGH_CONFIDENCE,
    POINTS_MEDIUM_CONFIDENCE,
    RANKINGS_KEY,
)
from eco_sorter.errors import CorruptPayloadError, KeyNotFoundError, StorageError
from eco_sorter.history import ClassificationHistory
from eco_sorter.identity import UserIdentity
from eco_sorter.io.codec import decode, encode
from eco_sorter.schemas.leaderboard import LeaderboardEntry, UserStats
from eco_sorter.schemas.record import ClassificationRecord, utc_now_iso
from eco_sorter.storage.base import PersistentStore

_ENTRIES = TypeAdapter(list[LeaderboardEntry])

# (username, total_scans, accurate_scans, points, joined)
_DEMO_USERS = [
    ("EcoWarrior", 156, 145, 3580, datetime(2024, 1, 15, tzinfo=UTC)),
    ("GreenHero", 132, 120, 2980, datetime(2024, 2, 20, tzinfo=UTC)),
    ("RecycleKing", 98, 92, 2240, datetime(2024, 3, 10, tzinfo=UTC)),
    ("EarthLover", 87, 80, 1970, datetime(2024, 3, 25, tzinfo=UTC)),
    ("WasteSorter", 65, 58, 1450, datetime(2024, 4, 5, tzinfo=UTC)),
]


def compute_points(history: Iterable[ClassificationRecord]) -> int:
    """Base points per scan plus a confidence bonus, summed over the history.

    >= 0.9 earns the high bonus; >= 0.7 the medium bonus; below that none.
    """
    points = 0
    for record in history:
        points += POINTS_BASE
        if record.confidence >= CONFIDENCE_THRESHOLD_TOP:
            points += POINTS_HIGH_CONFIDENCE
        elif record.confidence >= CONFIDENCE_THRESHOLD_MEDIUM:
            points += POINTS_MEDIUM_CONFIDENCE
    return points


def compute_user_stats(history: Sequence[ClassificationRecord]) -> UserStats:
    return UserStats(
        total_scans=len(history),
        accurate_scans=sum(
            1 for r in history if r.confidence >= CONFIDENCE_THRESHOLD_MEDIUM
        ),
        points=compute_points(history),
    )


def sort_rankings(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Points descending; equal points ordered by username."""
    return sorted(entries, key=lambda e: (-e.points, e.username))


def demo_rankings(now: str | None = None) -> list[LeaderboardEntry]:
    """The five first-run demonstration entries."""
    now = now or utc_now_iso()
    return [
        LeaderboardEntry(
            username=username,
            total_scans=total,
            accurate_scans=accurate,
            points=points,
            joined_date=joined.isoformat(),
            last_updated=now,
        )
        for username, total, accurate, points, joined in _DEMO_USERS
    ]


class RankingAggregator:
    """Keeps one leaderboard entry per username.

    Every mutation reads the full leaderboard, merges in memory, re-sorts
    and writes the full list back while holding the rankings key lock.
    """

    def __init__(
        self,
        store: PersistentStore,
        history: ClassificationHistory,
        identity: UserIdentity,
        key: str = RANKINGS_KEY,
    ) -> None:
        self.store = store
        self.history = history
        self.identity = identity
        self.key = key

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def load(self) -> list[LeaderboardEntry]:
        """Strict read; raises KeyNotFoundError / CorruptPayloadError / StorageError."""
        payload = await self.store.get(self.key)
        if payload is None:
            raise KeyNotFoundError(self.key)
        return decode(payload, _ENTRIES, self.key)

    async def _entries(self) -> list[LeaderboardEntry]:
        try:
            return await self.load()
        except KeyNotFoundError:
            return []
        except StorageError as e:
            logger.warning(f"Treating unreadable leaderboard as empty: {e}")
            return []

    async def _load_for_update(self) -> list[LeaderboardEntry]:
        """Strict read for a rewrite. Only an absent or corrupt board counts as empty."""
        try:
            return await self.load()
        except KeyNotFoundError:
            return []
        except CorruptPayloadError as e:
            logger.warning(f"Overwriting corrupt leaderboard: {e}")
            return []

    async def list_rankings(self) -> list[LeaderboardEntry]:
        """Entries sorted by points; seeds demo entries on first run."""
        try:
            await self.seed_demo_rankings()
        except StorageError as e:
            logger.warning(f"Skipping demo seeding: {e}")
        return sort_rankings(await self._entries())

    async def seed_demo_rankings(self) -> bool:
        """Persist the demo entries if the leaderboard is empty.

        Returns True when seeding happened.

        Raises:
            StorageError: The leaderboard could not be read or written. An
                existing board is never replaced.
        """
        async with self.store.lock(self.key):
            if await self._load_for_update():
                return False
            entries = demo_rankings()
            await self.store.set(self.key, encode(entries))
        logger.info(f"Seeded leaderboard with {len(entries)} demo entries")
        return True

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------
    async def compute_stats(self, username: str | None = None) -> UserStats:
        """Recompute a user's stats from the full history and upsert them.

        ``username`` defaults to the logged-in user. With nobody logged in
        the leaderboard is left untouched and zero stats are returned, as
        they are when the history cannot be read.
        """
        if username is None:
            username = await self.identity.current_user()
        if username is None:
            return UserStats.zero()

        try:
            records = await self.history.load()
        except KeyNotFoundError:
            records = []
        except CorruptPayloadError as e:
            logger.warning(f"Scoring unreadable history as empty: {e}")
            records = []
        except StorageError as e:
            logger.error(f"Could not read history for {username}: {e}")
            return UserStats.zero()

        stats = compute_user_stats(records)
        try:
            await self.upsert_entry(username, stats)
        except StorageError as e:
            logger.error(f"Could not update ranking for {username}: {e}")
        return stats

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def upsert_entry(self, username: str, stats: UserStats) -> LeaderboardEntry:
        """Overwrite the user's counters or create their entry.

        Raises:
            StorageError: The read or the write failed.
        """
        now = utc_now_iso()
        async with self.store.lock(self.key):
            entries = await self._load_for_update()
            for i, existing in enumerate(entries):
                if existing.username == username:
                    entry = existing.model_copy(
                        update={
                            "total_scans": stats.total_scans,
                            "accurate_scans": stats.accurate_scans,
                            "points": stats.points,
                            "last_updated": now,
                        }
                    )
                    entries[i] = entry
                    break
            else:
                entry = LeaderboardEntry(
                    username=username,
                    total_scans=stats.total_scans,
                    accurate_scans=stats.accurate_scans,
                    points=stats.points,
                    joined_date=now,
                    last_updated=now,
                )
                entries.append(entry)
                logger.info(f"Added {username} to the leaderboard")
            await self.store.set(self.key, encode(sort_rankings(entries)))
        return entry

    async def award_bonus(self, username: str, points: int, reason: str) -> bool:
        """Add bonus points to an existing entry.

        ``reason`` is logged for auditing but not persisted. Returns False
        when the user has no entry, or when the leaderboard cannot be read or
        written.
        """
        async with self.store.lock(self.key):
            try:
                entries = await self._load_for_update()
            except StorageError as e:
                logger.error(f"Could not award bonus to {username}: {e}")
                return False
            for i, existing in enumerate(entries):
                if existing.username == username:
                    entries[i] = existing.model_copy(
                        update={
                            "points": existing.points + points,
                            "last_updated": utc_now_iso(),
                        }
                    )
                    break
            else:
                logger.warning(f"Cannot award bonus: no leaderboard entry for {username}")
                return False
            try:
                await self.store.set(self.key, encode(sort_rankings(entries)))
            except StorageError as e:
                logger.error(f"Could not award bonus to {username}: {e}")
                return False

        logger.info(f"Awarded {points} bonus points to {username} for: {reason}")
        return True

"""Tests for points computation and the RankingAggregator leaderboard."""

from __future__ import annotations

import asyncio

import pytest

from eco_sorter.config import HISTORY_KEY, RANKINGS_KEY
from eco_sorter.errors import KeyNotFoundError, StorageError
from eco_sorter.history import ClassificationHistory
from eco_sorter.identity import UserIdentity
from eco_sorter.io.codec import encode
from eco_sorter.ranking import (
    RankingAggregator,
    compute_points,
    compute_user_stats,
    demo_rankings,
    sort_rankings,
)
from eco_sorter.schemas.leaderboard import LeaderboardEntry, UserStats
from eco_sorter.storage import InMemoryStore

from doubles import FailingWriteStore, FlakyReadStore, RecordFactory


def _aggregator(store: InMemoryStore) -> RankingAggregator:
    history = ClassificationHistory(store)
    return RankingAggregator(store, history, UserIdentity(store))


class TestComputePoints:
    def test_mixed_confidences(self, make_record: RecordFactory) -> None:
        history = [make_record(0.95), make_record(0.75), make_record(0.5)]
        assert compute_points(history) == (10 + 20) + (10 + 10) + 10

    def test_thresholds_inclusive(self, make_record: RecordFactory) -> None:
        assert compute_points([make_record(0.9)]) == 30
        assert compute_points([make_record(0.7)]) == 20
        assert compute_points([make_record(0.6999)]) == 10

    def test_empty(self) -> None:
        assert compute_points([]) == 0

    def test_user_stats(self, make_record: RecordFactory) -> None:
        history = [make_record(0.95), make_record(0.7), make_record(0.3)]
        assert compute_user_stats(history) == UserStats(
            total_scans=3, accurate_scans=2, points=60
        )


class TestSortRankings:
    def test_points_descending_then_username(self) -> None:
        entries = [
            LeaderboardEntry(username="zed", points=50),
            LeaderboardEntry(username="amy", points=50),
            LeaderboardEntry(username="bob", points=90),
        ]
        assert [e.username for e in sort_rankings(entries)] == ["bob", "amy", "zed"]


class TestListRankings:
    def test_bootstrap_seeds_demo_entries_once(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            first = await aggregator.list_rankings()
            assert [e.username for e in first] == [
                "EcoWarrior",
                "GreenHero",
                "RecycleKing",
                "EarthLover",
                "WasteSorter",
            ]
            assert await store.get(RANKINGS_KEY) is not None
            second = await aggregator.list_rankings()
            assert second == first

        asyncio.run(scenario())

    def test_demo_joined_dates(self) -> None:
        joined = {e.username: e.joined_date for e in demo_rankings()}
        assert joined["EcoWarrior"].startswith("2024-01-15")
        assert joined["WasteSorter"].startswith("2024-04-05")

    def test_seed_is_noop_when_entries_exist(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            await aggregator.upsert_entry("alice", UserStats(points=5))
            assert await aggregator.seed_demo_rankings() is False
            rankings = await aggregator.list_rankings()
            assert [e.username for e in rankings] == ["alice"]

        asyncio.run(scenario())

    def test_read_failure_never_seeds_over_existing_board(
        self, flaky_store: FlakyReadStore
    ) -> None:
        aggregator = _aggregator(flaky_store)

        async def scenario() -> None:
            await aggregator.upsert_entry("alice", UserStats(points=5))
            flaky_store.read_failures = 1
            with pytest.raises(StorageError):
                await aggregator.seed_demo_rankings()
            flaky_store.read_failures = 1
            rankings = await aggregator.list_rankings()
            assert [e.username for e in rankings] == ["alice"]

        asyncio.run(scenario())

    def test_sorted_after_mutation(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> list[int]:
            await aggregator.list_rankings()
            await aggregator.upsert_entry("alice", UserStats(points=2500))
            await aggregator.award_bonus("WasteSorter", 5000, "cleanup event")
            return [e.points for e in await aggregator.list_rankings()]

        points = asyncio.run(scenario())
        assert points == sorted(points, reverse=True)
        assert points[0] == 6450


class TestUpsertEntry:
    def test_idempotent_merge(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)
        stats = UserStats(total_scans=3, accurate_scans=2, points=60)

        async def scenario() -> None:
            first = await aggregator.upsert_entry("alice", stats)
            second = await aggregator.upsert_entry("alice", stats)
            entries = await aggregator.load()
            assert [e.username for e in entries] == ["alice"]
            assert second.model_dump(exclude={"last_updated"}) == first.model_dump(
                exclude={"last_updated"}
            )

        asyncio.run(scenario())

    def test_update_keeps_joined_date(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            created = await aggregator.upsert_entry("alice", UserStats(points=10))
            updated = await aggregator.upsert_entry("alice", UserStats(points=40))
            assert updated.joined_date == created.joined_date
            assert updated.points == 40

        asyncio.run(scenario())

    def test_concurrent_upserts_keep_every_user(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)
        users = [f"user{i}" for i in range(15)]

        async def scenario() -> set[str]:
            await asyncio.gather(
                *(aggregator.upsert_entry(u, UserStats(points=i)) for i, u in enumerate(users))
            )
            return {e.username for e in await aggregator.load()}

        assert asyncio.run(scenario()) == set(users)


    def test_read_failure_writes_nothing(self, flaky_store: FlakyReadStore) -> None:
        aggregator = _aggregator(flaky_store)

        async def scenario() -> None:
            await aggregator.upsert_entry("alice", UserStats(points=5))
            writes = flaky_store.writes
            flaky_store.read_failures = 1
            with pytest.raises(StorageError):
                await aggregator.upsert_entry("bob", UserStats(points=7))
            assert flaky_store.writes == writes
            assert [e.username for e in await aggregator.load()] == ["alice"]

        asyncio.run(scenario())


class TestAwardBonus:
    def test_adds_points(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            await aggregator.upsert_entry("alice", UserStats(points=60))
            assert await aggregator.award_bonus("alice", 15, "first glass") is True
            (entry,) = await aggregator.load()
            assert entry.points == 75

        asyncio.run(scenario())

    def test_unknown_user(self, store: InMemoryStore) -> None:
        aggregator = _aggregator(store)
        assert asyncio.run(aggregator.award_bonus("ghost", 15, "n/a")) is False

    def test_read_failure_reported(self, flaky_store: FlakyReadStore) -> None:
        aggregator = _aggregator(flaky_store)

        async def scenario() -> None:
            await aggregator.upsert_entry("alice", UserStats(points=60))
            flaky_store.read_failures = 1
            assert await aggregator.award_bonus("alice", 15, "streak") is False
            (entry,) = await aggregator.load()
            assert entry.points == 60

        asyncio.run(scenario())

    def test_write_failure_reported(self, failing_store: FailingWriteStore) -> None:
        aggregator = _aggregator(failing_store)

        async def scenario() -> bool:
            failing_store._data[RANKINGS_KEY] = (
                b'[{"username":"alice","total_scans":1,"accurate_scans":1,'
                b'"points":10,"joined_date":"2025-01-01T00:00:00+00:00",'
                b'"last_updated":"2025-01-01T00:00:00+00:00"}]'
            )
            return await aggregator.award_bonus("alice", 5, "streak")

        assert asyncio.run(scenario()) is False


class TestComputeStats:
    def test_no_logged_in_user(
        self, store: InMemoryStore, make_record: RecordFactory
    ) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            await aggregator.history.append(make_record(0.95))
            assert await aggregator.compute_stats() == UserStats.zero()
            with pytest.raises(KeyNotFoundError):
                await aggregator.load()

        asyncio.run(scenario())

    def test_logged_in_user_is_upserted(
        self, store: InMemoryStore, make_record: RecordFactory
    ) -> None:
        aggregator = _aggregator(store)

        async def scenario() -> None:
            await aggregator.identity.login("alice")
            for confidence in (0.95, 0.75, 0.5):
                await aggregator.history.append(make_record(confidence))
            stats = await aggregator.compute_stats()
            assert stats == UserStats(total_scans=3, accurate_scans=2, points=60)
            (entry,) = await aggregator.load()
            assert entry.username == "alice"
            assert entry.points == 60

        asyncio.run(scenario())

    def test_write_failure_still_returns_stats(
        self, failing_store: FailingWriteStore, make_record: RecordFactory
    ) -> None:
        records = [make_record(c) for c in (0.95, 0.75, 0.5)]
        failing_store._data[HISTORY_KEY] = encode(records)
        aggregator = _aggregator(failing_store)

        async def scenario() -> UserStats:
            stats = await aggregator.compute_stats("alice")
            assert await failing_store.get(RANKINGS_KEY) is None
            return stats

        stats = asyncio.run(scenario())
        assert stats == UserStats(total_scans=3, accurate_scans=2, points=60)

    def test_history_read_failure_keeps_entry(
        self, flaky_store: FlakyReadStore, make_record: RecordFactory
    ) -> None:
        aggregator = _aggregator(flaky_store)

        async def scenario() -> None:
            await aggregator.history.append(make_record(0.95))
            await aggregator.compute_stats("alice")
            flaky_store.read_failures = 1
            assert await aggregator.compute_stats("alice") == UserStats.zero()
            (entry,) = await aggregator.load()
            assert entry.points == 30

        asyncio.run(scenario())


class TestUserIdentity:
    def test_login_logout(self, store: InMemoryStore) -> None:
        identity = UserIdentity(store)

        async def scenario() -> None:
            assert await identity.current_user() is None
            await identity.login("  alice ")
            assert await identity.current_user() == "alice"
            await identity.logout()
            assert await identity.current_user() is None

        asyncio.run(scenario())

    def test_blank_username_rejected(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError):
            asyncio.run(UserIdentity(store).login("   "))

"""Tests for the rich report tables."""

from __future__ import annotations

from rich.console import Console

from eco_sorter.ranking import demo_rankings
from eco_sorter.reporting import (
    category_distribution_table,
    history_table,
    leaderboard_table,
    print_retraining_decision,
)
from eco_sorter.schemas.training import RetrainingDecision

from doubles import RecordFactory


def _render(renderable: object) -> str:
    console = Console(record=True, width=120)
    console.print(renderable)
    return console.export_text()


class TestLeaderboardTable:
    def test_one_row_per_entry(self) -> None:
        table = leaderboard_table(demo_rankings())
        assert table.row_count == 5
        text = _render(table)
        assert "EcoWarrior" in text
        assert "3580" in text

    def test_empty(self) -> None:
        assert leaderboard_table([]).row_count == 0


class TestCategoryDistributionTable:
    def test_percentages(self) -> None:
        text = _render(category_distribution_table({"Paper": 3, "Glass": 1}))
        assert "75.0%" in text
        assert "25.0%" in text

    def test_empty_counts(self) -> None:
        assert category_distribution_table({}).row_count == 0


class TestHistoryTable:
    def test_rows(self, make_record: RecordFactory) -> None:
        table = history_table([make_record(0.9, "Metal"), make_record(0.4, "Other")])
        assert table.row_count == 2
        assert "90%" in _render(table)


class TestRetrainingDecisionOutput:
    def test_recommended(self) -> None:
        console = Console(record=True, width=120)
        decision = RetrainingDecision(
            needs_retraining=True,
            has_enough_new_samples=True,
            is_imbalanced=False,
            total_samples=60,
        )
        print_retraining_decision(console, decision)
        text = console.export_text()
        assert "retraining recommended" in text
        assert "60" in text

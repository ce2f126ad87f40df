"""Rich tables for the leaderboard, curated-set balance and retraining status."""

from __future__ import annotations

from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from eco_sorter.schemas.leaderboard import LeaderboardEntry
from eco_sorter.schemas.record import ClassificationRecord
from eco_sorter.schemas.training import RetrainingDecision


def leaderboard_table(
    entries: Sequence[LeaderboardEntry], highlight: str | None = None
) -> Table:
    table = Table(
        title="Leaderboard",
        header_style="bold magenta",
        box=box.SQUARE,
    )
    table.add_column("Rank", justify="right")
    table.add_column("User", style="cyan")
    table.add_column("Scans", justify="right")
    table.add_column("Accurate", justify="right")
    table.add_column("Points", justify="right", style="green")

    for rank, entry in enumerate(entries, start=1):
        table.add_row(
            str(rank),
            entry.username,
            str(entry.total_scans),
            str(entry.accurate_scans),
            str(entry.points),
            style="bold yellow" if entry.username == highlight else None,
        )
    return table


def category_distribution_table(counts: dict[str, int]) -> Table:
    """Per-label counts of the curated training set, largest first."""
    total = sum(counts.values())
    table = Table(
        title="Curated Sample Distribution",
        header_style="bold magenta",
        box=box.SQUARE,
        show_lines=True,
    )
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Percentage", justify="right", style="yellow")

    for category, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
        pct = count / total * 100 if total > 0 else 0.0
        table.add_row(category, str(count), f"{pct:.1f}%")
    return table


def history_table(records: Sequence[ClassificationRecord]) -> Table:
    table = Table(title="Classification History", header_style="bold magenta")
    table.add_column("When")
    table.add_column("Category", style="cyan")
    table.add_column("Confidence", justify="right", style="green")
    table.add_column("Image")
    for r in records:
        table.add_row(r.timestamp, r.category, f"{r.confidence:.0%}", r.image_ref)
    return table


def print_retraining_decision(console: Console, decision: RetrainingDecision) -> None:
    verdict = (
        "[bold red]retraining recommended[/]"
        if decision.needs_retraining
        else "[green]model up to date[/]"
    )
    console.print(f"Curated samples: {decision.total_samples} -> {verdict}")
    console.print(f"  enough new samples: {decision.has_enough_new_samples}")
    console.print(f"  imbalanced classes: {decision.is_imbalanced}")

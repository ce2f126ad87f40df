"""Command-line entrypoint for eco_sorter.

Usage:
    eco-sorter                                   # status of the default store
    eco-sorter command=login username=alice
    eco-sorter command=rankings
    eco-sorter command=history category=Plastic
    eco-sorter command=classify image=photo.jpg
    eco-sorter store=ram command=status          # throwaway in-memory store
    eco-sorter store.db_path=/data/eco.db        # choose the SQLite file
"""

from __future__ import annotations

import asyncio
import sys

import hydra
from loguru import logger
from omegaconf import DictConfig
from rich.console import Console

# CRITICAL: import storage to trigger @register decorators BEFORE Hydra parses config
import eco_sorter.storage  # noqa: F401
from eco_sorter.curation import TrainingSampleCurator
from eco_sorter.history import ClassificationHistory, filter_by_category
from eco_sorter.identity import UserIdentity
from eco_sorter.inference.base import BaseClassificationEngine
from eco_sorter.pipeline import ClassificationPipeline
from eco_sorter.ranking import RankingAggregator
from eco_sorter.reporting import (
    category_distribution_table,
    history_table,
    leaderboard_table,
    print_retraining_decision,
)
from eco_sorter.retraining import evaluate_retraining
from eco_sorter.storage.base import PersistentStore
from eco_sorter.uploads import SimulatedUploader

COMMANDS = ("status", "history", "rankings", "login", "logout", "classify", "clear")


async def run_command(
    cfg: DictConfig, store: PersistentStore, console: Console | None = None
) -> int:
    """Execute ``cfg.command`` against ``store``. Returns a process exit code."""
    console = console or Console()
    command = cfg.get("command", "status")
    if command not in COMMANDS:
        logger.error(f"Unknown command '{command}'. Expected one of {COMMANDS}")
        return 2

    history = ClassificationHistory(store)
    curator = TrainingSampleCurator(store)
    identity = UserIdentity(store)
    rankings = RankingAggregator(store, history, identity)

    if command == "status":
        records = await history.list_records()
        samples = await curator.get()
        user = await identity.current_user()
        console.print(f"User: {user or '(not logged in)'}")
        console.print(f"Classifications stored: {len(records)}")
        console.print(category_distribution_table(samples.category_counts()))
        print_retraining_decision(console, evaluate_retraining(samples))

    elif command == "history":
        records = await history.list_records()
        if cfg.get("category"):
            records = filter_by_category(records, cfg.category)
        console.print(history_table(records))

    elif command == "rankings":
        username = cfg.get("username") or await identity.current_user()
        if username:
            stats = await rankings.compute_stats(username)
            console.print(f"{username}: {stats.points} points")
        console.print(leaderboard_table(await rankings.list_rankings(), username))

    elif command == "login":
        if not cfg.get("username"):
            logger.error("login requires username=<name>")
            return 2
        await identity.login(cfg.username)

    elif command == "logout":
        await identity.logout()

    elif command == "classify":
        if not cfg.get("image"):
            logger.error("classify requires image=<path>")
            return 2
        pipeline = _build_pipeline(cfg, history, curator)
        record = await pipeline.process_image(cfg.image)
        await pipeline.drain_uploads()
        console.print(
            f"{record.image_ref}: [cyan]{record.category}[/] "
            f"({record.confidence:.0%})"
        )

    elif command == "clear":
        if not await _build_pipeline(cfg, history, curator).clear_all_data():
            return 1

    return 0


def _build_pipeline(
    cfg: DictConfig,
    history: ClassificationHistory,
    curator: TrainingSampleCurator,
) -> ClassificationPipeline:
    # Model loading is deferred until the first classify().
    engine: BaseClassificationEngine = hydra.utils.instantiate(cfg.engine)
    return ClassificationPipeline(engine, history, curator, SimulatedUploader())


async def _main(cfg: DictConfig) -> int:
    store: PersistentStore = hydra.utils.instantiate(cfg.store)
    try:
        return await run_command(cfg, store)
    finally:
        await store.close()


@hydra.main(version_base=None, config_path="conf", config_name="eco_sorter")
def main(cfg: DictConfig) -> None:
    """Run one eco_sorter command with the given Hydra config."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    exit_code = asyncio.run(_main(cfg))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()

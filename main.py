"""
Karate tournament progression engine CLI
"""
import asyncio
import json
import sys
from typing import List, Optional

from loguru import logger

from progression.engine import BracketProgressionEngine
from progression.service import ProgressionService
from reports.assembler import build_report_from_snapshot
from reports.store import JsonFileReportStore, JsonSnapshotSource
from scheduler.scheduler import ProgressionScheduler
from scoring.aggregator import compute_final_score, finalize_snapshot_scores
from tournament.config import scheduler_config
from tournament.errors import TournamentError


# Logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/engine_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


def run_score(scores: List[float]) -> int:
    try:
        breakdown = compute_final_score(scores)
    except TournamentError as e:
        logger.error(f"Cannot score: {e}")
        return 1
    print(json.dumps(breakdown.to_dict(), indent=2))
    return 0


def run_report(snapshot_path: str, category_id: Optional[str], output_dir: Optional[str]) -> int:
    source = JsonSnapshotSource(snapshot_path)
    category_ids = [category_id] if category_id else source.category_ids()
    store = JsonFileReportStore(output_dir) if output_dir else None

    for cid in category_ids:
        report = build_report_from_snapshot(source.fetch_snapshot(cid))
        if store is not None:
            store.save(report)
            logger.info(f"Report written for {cid}")
        else:
            print(report.to_json())
    return 0


def run_status(snapshot_path: str, category_id: Optional[str]) -> int:
    source = JsonSnapshotSource(snapshot_path)
    category_ids = [category_id] if category_id else source.category_ids()

    for cid in category_ids:
        snapshot = finalize_snapshot_scores(source.fetch_snapshot(cid))
        engine = BracketProgressionEngine.for_category(snapshot.category)
        print(f"\n=== {snapshot.category.category_name} ({cid}) ===")
        for level, state in engine.level_states(snapshot).items():
            print(f"  {level.value}: {state.value}")
        plan = engine.advancement_plan(snapshot)
        if plan is not None:
            print(f"  → ready: {plan.level.value} → {plan.next_level.value} "
                  f"({len(plan.advancing)} advancing)")
    return 0


async def run_scheduler(snapshot_path: str, report_dir: str, interval: Optional[int]) -> int:
    source = JsonSnapshotSource(snapshot_path)
    service = ProgressionService(source, JsonFileReportStore(report_dir))
    scheduler = ProgressionScheduler(service, source.category_ids, interval_seconds=interval)

    await scheduler.run_now()
    scheduler.start()
    logger.info("Running in scheduler mode... (Ctrl+C to stop)")

    try:
        while True:
            await asyncio.sleep(60)
            logger.debug(f"Scheduler status: {scheduler.get_status()}")
    except (KeyboardInterrupt, asyncio.CancelledError):
        scheduler.stop()
        logger.info("Scheduler shut down")
    return 0


async def main():
    import argparse

    parser = argparse.ArgumentParser(description="Karate tournament progression engine")
    parser.add_argument(
        "--mode",
        choices=["score", "report", "status", "scheduler"],
        default="report",
        help="Run mode"
    )
    parser.add_argument("--scores", type=float, nargs="+", help="Judge scores (score mode)")
    parser.add_argument("--snapshot", help="Snapshot JSON file or directory of <category_id>.json")
    parser.add_argument("--category", help="Category id (default: every category in --snapshot)")
    parser.add_argument("--output", help="Report directory (report mode, default: print)")
    parser.add_argument("--report-dir", default=scheduler_config.report_dir, help="Report directory (scheduler mode)")
    parser.add_argument("--interval", type=int, help="Refresh interval in seconds (scheduler mode)")

    args = parser.parse_args()

    if args.mode == "score":
        if not args.scores:
            parser.error("--scores is required in score mode")
        sys.exit(run_score(args.scores))

    if not args.snapshot:
        parser.error(f"--snapshot is required in {args.mode} mode")

    if args.mode == "report":
        sys.exit(run_report(args.snapshot, args.category, args.output))

    elif args.mode == "status":
        sys.exit(run_status(args.snapshot, args.category))

    elif args.mode == "scheduler":
        sys.exit(await run_scheduler(args.snapshot, args.report_dir, args.interval))


if __name__ == "__main__":
    asyncio.run(main())

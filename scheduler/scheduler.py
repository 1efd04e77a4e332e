"""
Progression refresh scheduler
"""
import asyncio
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from progression.service import ProgressionService
from tournament.config import SchedulerConfig, scheduler_config

CategoryIds = Union[Iterable[str], Callable[[], Iterable[str]]]


class ProgressionScheduler:
    """Polls categories and keeps their brackets and reports current"""

    def __init__(
        self,
        service: ProgressionService,
        category_ids: CategoryIds,
        interval_seconds: Optional[int] = None,
    ):
        """
        Args:
            service: refresh service
            category_ids: categories to refresh, or a callable returning them
                (re-evaluated on every run)
            interval_seconds: polling interval (default from settings, 3-30 s)
        """
        self.scheduler = AsyncIOScheduler()
        self.service = service
        self._category_ids = category_ids
        if interval_seconds is None:
            self.interval_seconds = scheduler_config.refresh_interval_seconds
        else:
            # Same 3-30 s bounds as the setting (pydantic ValidationError otherwise)
            self.interval_seconds = SchedulerConfig(refresh_interval_seconds=interval_seconds).refresh_interval_seconds
        self._is_running = False
        self._last_refresh: Optional[datetime] = None
        self._last_failed: List[str] = []
        self._skipped_runs = 0

    def category_ids(self) -> List[str]:
        ids = self._category_ids() if callable(self._category_ids) else self._category_ids
        return list(ids)

    def setup(self):
        self.scheduler.add_job(
            self._run_refresh,
            IntervalTrigger(seconds=self.interval_seconds),
            id="progression_refresh",
            name="Progression Refresh",
            replace_existing=True,
            max_instances=1,
        )
        logger.info(f"Progression refresh scheduled every {self.interval_seconds}s")

    async def _run_refresh(self) -> Optional[Dict]:
        """One refresh pass; skipped while the previous pass is still running"""
        if self._is_running:
            self._skipped_runs += 1
            logger.debug("Refresh still in progress, skipping this run")
            return None

        self._is_running = True
        try:
            results = await asyncio.to_thread(self.service.refresh_all, self.category_ids())
            self._last_refresh = datetime.now()
            self._last_failed = [cid for cid, stored in results.items() if stored is None]
            if self._last_failed:
                logger.warning(f"Refresh finished with failures: {', '.join(self._last_failed)}")
            return results
        except Exception as e:
            logger.error(f"❌ Refresh pass failed: {e}")
            return None
        finally:
            self._is_running = False

    def start(self):
        self.setup()
        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def get_status(self) -> dict:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None
            })

        return {
            "is_running": self._is_running,
            "interval_seconds": self.interval_seconds,
            "last_refresh": self._last_refresh.isoformat() if self._last_refresh else None,
            "last_failed": list(self._last_failed),
            "skipped_runs": self._skipped_runs,
            "jobs": jobs,
        }

    async def run_now(self) -> Optional[Dict]:
        """Refresh immediately (explicit user action)"""
        return await self._run_refresh()

"""
Scan Scheduler

APScheduler-based timer that runs the miss detector at a fixed cadence.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import structlog
from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

# Type for the periodic scan callback
ScanCallback = Callable[[], Awaitable[Any]]

SCAN_JOB_ID = "miss-detector"


class ScanScheduler:
    """
    Runs a scan callback every `poll_every`.

    Missed runs are coalesced and only one scan runs at a time, so a slow
    scan delays the next one instead of stacking up.
    """

    def __init__(
        self,
        scan: ScanCallback,
        poll_every: timedelta = timedelta(seconds=1),
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            scan: Async function run on every tick
            poll_every: Tick interval; non-positive values mean one second
        """
        self._scan = scan
        self._poll_every = poll_every if poll_every > timedelta(0) else timedelta(seconds=1)
        self._scheduler: AsyncIOScheduler | None = None
        self._logger = logger or structlog.get_logger(__name__)

    def _create_scheduler(self) -> AsyncIOScheduler:
        """Create and configure the APScheduler instance."""
        jobstores = {
            "default": MemoryJobStore(),
        }
        executors = {
            "default": AsyncIOExecutor(),
        }
        job_defaults = {
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,  # Only one scan at a time
            "misfire_grace_time": max(1, int(self._poll_every.total_seconds())),
        }

        return AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone="UTC",
        )

    @property
    def poll_every(self) -> timedelta:
        return self._poll_every

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._scheduler is not None

    async def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self._scheduler is not None:
            self._logger.warning("Scan scheduler already running")
            return

        self._scheduler = self._create_scheduler()
        self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(
                seconds=self._poll_every.total_seconds(),
                start_date=datetime.now(timezone.utc) + self._poll_every,
            ),
            id=SCAN_JOB_ID,
            name="scan:miss-detector",
            replace_existing=True,
        )
        self._scheduler.start()
        self._logger.info("Scan scheduler started", poll_every=str(self._poll_every))

    async def stop(self) -> None:
        """Stop ticking."""
        if self._scheduler is None:
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._logger.info("Scan scheduler stopped")

    async def _tick(self) -> None:
        """Run one scan; failures are logged so the next tick still runs."""
        try:
            await self._scan()
        except Exception as e:
            self._logger.error("Scan failed", error=str(e))

"""Timer producer for scheduled full syncs."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

TIMED_SYNC_JOB_ID = "assetsync-timed-sync"


class TimedSynchronizer:
    """Fires ``trigger`` at a fixed interval, starting immediately.

    The trigger is expected to be cheap (queue admission); the actual sync
    runs on the job queue, so a slow sync never delays the timer.
    """

    def __init__(
        self,
        trigger: Callable[[], Awaitable[Any]],
        *,
        interval_minutes: int = 30,
        run_immediately: bool = True,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be greater than zero")
        self._trigger = trigger
        self._interval_minutes = interval_minutes
        self._run_immediately = run_immediately
        self._loop = loop
        self._scheduler = scheduler
        self._owns_scheduler = scheduler is None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return

        if self._scheduler is None:
            loop = self._loop or asyncio.get_running_loop()
            self._scheduler = AsyncIOScheduler(event_loop=loop)

        options: Dict[str, Any] = {}
        if self._run_immediately:
            options["next_run_time"] = datetime.now()
        self._scheduler.add_job(
            self._fire,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=TIMED_SYNC_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            **options,
        )
        if not self._scheduler.running:
            self._scheduler.start()

        self._running = True
        logger.info(
            "Timed synchronizer started",
            extra={"sync_interval_minutes": self._interval_minutes},
        )

    def stop(self) -> None:
        if not self._running:
            return

        if self._scheduler.get_job(TIMED_SYNC_JOB_ID) is not None:
            self._scheduler.remove_job(TIMED_SYNC_JOB_ID)
        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Timed synchronizer stopped")

    async def _fire(self) -> None:
        try:
            await self._trigger()
        except Exception:  # noqa: BLE001
            logger.exception("Timed sync trigger failed")


__all__ = ["TIMED_SYNC_JOB_ID", "TimedSynchronizer"]

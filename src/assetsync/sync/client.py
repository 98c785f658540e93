"""Sync client: wires the job queue to its timer and push producers."""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Optional

from ..configuration.settings import SettingsProvider
from ..errors import AssetSyncError
from ..orchestrator.models import JobOrigin
from ..orchestrator.push import PushEvent, PushSource
from ..orchestrator.queue import JobExecutionQueue
from ..orchestrator.scheduler import TimedSynchronizer
from .pipeline import SyncOrchestrator, SyncRunReport

logger = logging.getLogger(__name__)

TimerFactory = Callable[[Callable[[], Awaitable[Any]], int], TimedSynchronizer]


def _default_timer(trigger: Callable[[], Awaitable[Any]], interval_minutes: int) -> TimedSynchronizer:
    # start() triggers the first full sync itself
    return TimedSynchronizer(trigger, interval_minutes=interval_minutes, run_immediately=False)


class SyncClient:
    """Owns the job queue, the timer and the push subscription.

    Scheduled runs import generic metadata and assets; push-triggered runs
    import assets only.
    """

    def __init__(
        self,
        *,
        settings_provider: SettingsProvider,
        orchestrator: SyncOrchestrator,
        queue: Optional[JobExecutionQueue] = None,
        push_source: Optional[PushSource] = None,
        timer_factory: TimerFactory = _default_timer,
    ) -> None:
        self._settings_provider = settings_provider
        self._orchestrator = orchestrator
        self._queue = queue or JobExecutionQueue()
        self._push_source = push_source
        self._timer_factory = timer_factory
        self._timer: Optional[TimedSynchronizer] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._started = False
        self.last_error: Optional[AssetSyncError] = None
        self.last_report: Optional[SyncRunReport] = None

    @property
    def queue(self) -> JobExecutionQueue:
        return self._queue

    @property
    def started(self) -> bool:
        return self._started

    def is_running(self) -> bool:
        """Whether a sync job is executing right now."""
        return self._queue.is_running()

    async def start(self) -> None:
        """Start timer and push producers and trigger an immediate full sync.

        Raises:
            ConfigurationError: If the settings do not allow syncing
        """
        if self._started:
            return

        self.last_error = None
        settings = self._settings_provider.get_settings()
        settings.validate_for_sync()

        if self._push_source is not None and settings.channel_id:
            settings.validate_for_push()

        self._timer = self._timer_factory(
            functools.partial(self.trigger_sync, True), settings.sync_interval_minutes
        )
        self._timer.start()

        if self._push_source is not None and settings.channel_id:
            self._unsubscribe = self._push_source.on_push_event(self._on_push_event)
            self._push_source.start(settings.channel_id)

        self._started = True
        logger.info(
            "Sync client started",
            extra={
                "sync_tenant": settings.tenant_id,
                "sync_channel": settings.channel_id,
                "sync_interval_minutes": settings.sync_interval_minutes,
            },
        )
        await self.trigger_sync(True)

    async def stop(self, *, wait: bool = True) -> None:
        """Stop producers, then the queue.

        Args:
            wait: Let admitted jobs finish before returning
        """
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            self._push_source.stop()

        await self._queue.shutdown(wait=wait)
        self._started = False
        logger.info("Sync client stopped")

    async def trigger_sync(self, with_metadata: bool) -> bool:
        """Enqueue a sync job.

        Args:
            with_metadata: Import generic metadata too (scheduled origin);
                otherwise assets only (push origin)

        Returns:
            True if the job was admitted
        """
        origin = JobOrigin.SCHEDULED if with_metadata else JobOrigin.PUSH_TRIGGERED
        admitted = await self._queue.add(origin, functools.partial(self._run_job, with_metadata))
        if not admitted:
            logger.debug("Sync job coalesced", extra={"sync_origin": origin.value})
        return admitted

    async def _run_job(self, with_metadata: bool) -> None:
        report = await self._orchestrator.run(with_metadata)
        self.last_report = report
        self.last_error = report.error

    async def _on_push_event(self, event: PushEvent) -> None:
        logger.info("Push event received", extra={"sync_channel": event.channel_id})
        await self.trigger_sync(False)


__all__ = ["SyncClient", "TimerFactory"]

"""Coalescing job execution queue for sync pipeline runs.

Sync runs must never overlap, and redundant triggers are pointless: a job that
is already waiting will do the same work as any job arriving after it. The
queue therefore keeps a single waiting slot, plus one extra slot reserved for
a scheduled job queued behind a push-triggered one (push runs skip the
generic metadata, so the scheduled run still has work to do).

All queue and run state is owned by one actor task and only changed through
commands posted to its inbox. Job bodies execute in their own task, so
admissions and queries are answered while a long pipeline run is in flight.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Union

from .models import JobAction, JobOrigin, QueueSnapshot, SyncJob

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Actor commands
# ---------------------------------------------------------------------------


@dataclass
class _Admit:
    job: SyncJob
    reply: asyncio.Future


@dataclass
class _RunNext:
    pass


@dataclass
class _JobFinished:
    job: SyncJob


@dataclass
class _Query:
    reply: asyncio.Future


@dataclass
class _AwaitIdle:
    reply: asyncio.Future


@dataclass
class _Stop:
    reply: asyncio.Future = field(repr=False, default=None)


_Command = Union[_Admit, _RunNext, _JobFinished, _Query, _AwaitIdle, _Stop]


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


class JobExecutionQueue:
    """Admits, coalesces and serially drains sync jobs from two origins.

    Admission rules:
    - push-triggered jobs are admitted only into an empty queue
    - scheduled jobs are admitted into an empty queue, or into the extra slot
      when the single waiting job is push-triggered
    - everything else is silently dropped

    Every successful admission triggers a drain attempt, and every finished
    job triggers the next one, so the queue drives itself.
    """

    QUEUE_LENGTH = 1
    EXTRA_SLOTS = 1
    CAPACITY = QUEUE_LENGTH + EXTRA_SLOTS

    def __init__(self) -> None:
        self._waiting: Deque[SyncJob] = deque()
        self._running: Optional[SyncJob] = None
        self._running_task: Optional[asyncio.Task] = None
        self._idle_waiters: List[asyncio.Future] = []
        self._inbox: Optional[asyncio.Queue] = None
        self._actor: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._snapshot = QueueSnapshot(waiting=(), running=None)

    # -- public API ---------------------------------------------------------

    async def add(self, origin: JobOrigin, action: Optional[JobAction]) -> bool:
        """Admit a job for the given origin.

        Returns:
            True if the job was queued, False if it was coalesced away
        """
        if action is None:
            return False
        job = SyncJob(origin=origin, action=action)
        reply = self._ensure_started().create_future()
        self._post(_Admit(job, reply))
        return await reply

    async def add_for_schedule(self, action: Optional[JobAction]) -> bool:
        return await self.add(JobOrigin.SCHEDULED, action)

    async def add_for_push(self, action: Optional[JobAction]) -> bool:
        return await self.add(JobOrigin.PUSH_TRIGGERED, action)

    def submit(
        self, origin: JobOrigin, action: Optional[JobAction]
    ) -> concurrent.futures.Future:
        """Admit a job from a thread that does not own the event loop.

        Returns:
            Future resolving to the admission result
        """
        if self._loop is None:
            raise RuntimeError("Job execution queue has not been started")
        return asyncio.run_coroutine_threadsafe(self.add(origin, action), self._loop)

    async def run(self) -> None:
        """Start the next waiting job unless one is already running.

        Returns immediately; the job itself executes in its own task.
        """
        self._ensure_started()
        self._post(_RunNext())

    def is_running(self) -> bool:
        return self._snapshot.is_running

    def has_waiting_job(self) -> bool:
        return self._snapshot.has_waiting_job

    async def snapshot(self) -> QueueSnapshot:
        """Query the actor for its current state."""
        reply = self._ensure_started().create_future()
        self._post(_Query(reply))
        return await reply

    async def wait_until_idle(self) -> None:
        """Wait until no job is running and none is waiting."""
        reply = self._ensure_started().create_future()
        self._post(_AwaitIdle(reply))
        await reply

    async def shutdown(self, *, wait: bool = True) -> None:
        """Stop the actor.

        A job still running after ``shutdown(wait=False)`` keeps executing;
        its completion stays in the inbox and is handled by the actor of the
        next admission, so the queue resumes draining after a restart.

        Args:
            wait: Let queued and running jobs finish before stopping
        """
        if self._actor is None:
            return
        if wait:
            await self.wait_until_idle()
        reply = self._loop.create_future()
        self._post(_Stop(reply))
        await reply
        await self._actor
        self._actor = None

    # -- actor --------------------------------------------------------------

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        if self._actor is None:
            loop = asyncio.get_running_loop()
            # Commands posted while stopped survive a restart on the same loop
            if self._inbox is None or loop is not self._loop:
                if self._loop is not None:
                    # Tasks of a previous loop can no longer report back
                    self._running = None
                    self._running_task = None
                    self._idle_waiters = []
                self._inbox = asyncio.Queue()
            self._loop = loop
            self._actor = loop.create_task(self._serve())
        return self._loop

    def _post(self, command: _Command) -> None:
        self._inbox.put_nowait(command)

    async def _serve(self) -> None:
        while True:
            command = await self._inbox.get()
            if isinstance(command, _Stop):
                command.reply.set_result(None)
                return
            try:
                self._handle(command)
            except Exception:  # noqa: BLE001
                logger.exception("Job queue failed to handle %s", type(command).__name__)
            self._publish()

    def _handle(self, command: _Command) -> None:
        if isinstance(command, _Admit):
            admitted = self._admit(command.job)
            if not command.reply.done():
                command.reply.set_result(admitted)
            if admitted:
                self._post(_RunNext())
        elif isinstance(command, _RunNext):
            self._start_next()
        elif isinstance(command, _JobFinished):
            if self._running is command.job:
                self._running = None
                self._running_task = None
            self._start_next()
        elif isinstance(command, _Query):
            command.reply.set_result(self._build_snapshot())
        elif isinstance(command, _AwaitIdle):
            self._idle_waiters.append(command.reply)

    def _admit(self, job: SyncJob) -> bool:
        waiting = len(self._waiting)

        if job.is_push_job:
            if waiting >= self.QUEUE_LENGTH:
                logger.debug(
                    "Dropping push-triggered job, another job is already waiting",
                    extra={"sync_job_id": job.job_id, "sync_origin": job.origin.value},
                )
                return False
        elif waiting >= self.CAPACITY:
            logger.debug(
                "Dropping scheduled job, queue is full",
                extra={"sync_job_id": job.job_id, "sync_origin": job.origin.value},
            )
            return False
        elif waiting == self.QUEUE_LENGTH and not self._waiting[-1].is_push_job:
            # The waiting scheduled job will do exactly the same work
            logger.debug(
                "Dropping scheduled job, a scheduled job is already waiting",
                extra={"sync_job_id": job.job_id, "sync_origin": job.origin.value},
            )
            return False

        self._waiting.append(job)
        logger.debug(
            "Queued sync job",
            extra={
                "sync_job_id": job.job_id,
                "sync_origin": job.origin.value,
                "sync_queue_depth": len(self._waiting),
            },
        )
        return True

    def _start_next(self) -> None:
        if self._running is not None or not self._waiting:
            return

        job = self._waiting.popleft()
        self._running = job
        self._running_task = self._loop.create_task(self._execute(job))

    async def _execute(self, job: SyncJob) -> None:
        logger.info(
            "Running sync job",
            extra={"sync_job_id": job.job_id, "sync_origin": job.origin.value},
        )
        try:
            await job.action()
        except Exception:  # noqa: BLE001
            logger.exception(
                "Sync job failed",
                extra={"sync_job_id": job.job_id, "sync_origin": job.origin.value},
            )
        finally:
            # Running flag is cleared by the actor, whatever happened to the job
            self._post(_JobFinished(job))

    def _build_snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            waiting=tuple(job.origin for job in self._waiting),
            running=self._running.origin if self._running else None,
            running_job_id=self._running.job_id if self._running else None,
        )

    def _publish(self) -> None:
        self._snapshot = self._build_snapshot()
        if self._running is None and not self._waiting and self._idle_waiters:
            waiters, self._idle_waiters = self._idle_waiters, []
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(None)


__all__ = ["JobExecutionQueue"]

"""Domain models for the job execution queue."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

JobAction = Callable[[], Awaitable[None]]


class JobOrigin(str, Enum):
    SCHEDULED = "scheduled"
    PUSH_TRIGGERED = "push_triggered"


@dataclass(frozen=True, slots=True)
class SyncJob:
    """A deferred pipeline run tagged with the trigger that produced it."""

    origin: JobOrigin
    action: JobAction
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_push_job(self) -> bool:
        return self.origin == JobOrigin.PUSH_TRIGGERED


@dataclass(frozen=True, slots=True)
class QueueSnapshot:
    """Point-in-time view of the queue, as seen by the owning actor."""

    waiting: tuple[JobOrigin, ...]
    running: JobOrigin | None
    running_job_id: str | None = None

    @property
    def is_running(self) -> bool:
        return self.running is not None

    @property
    def has_waiting_job(self) -> bool:
        return bool(self.waiting)

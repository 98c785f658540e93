"""Job orchestration: the execution queue and its two trigger sources."""

from .models import JobOrigin, QueueSnapshot, SyncJob
from .push import PushEvent, PushEventBridge, PushSource
from .queue import JobExecutionQueue
from .retry_policy import FailureType, RetryPolicy, classify_failure
from .scheduler import TimedSynchronizer

__all__ = [
    "FailureType",
    "JobExecutionQueue",
    "JobOrigin",
    "PushEvent",
    "PushEventBridge",
    "PushSource",
    "QueueSnapshot",
    "RetryPolicy",
    "SyncJob",
    "TimedSynchronizer",
    "classify_failure",
]

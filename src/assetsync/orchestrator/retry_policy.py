"""Retry policy and failure classification for catalog API calls.

Implements exponential backoff with optional jitter and failure-type-specific
handling: authorization failures trigger a token refresh before the next
attempt, rate limits and transport failures back off and retry, and any other
API error aborts immediately.
"""

from __future__ import annotations

import random
from enum import Enum

from pydantic import BaseModel, Field

from ..errors import AssetSyncError, CatalogApiError, TransientTransportError


class FailureType(str, Enum):
    """Failure classification for retry decisions."""

    UNAUTHORIZED = "unauthorized"  # 401/403, refresh token then retry
    RATE_LIMITED = "rate_limited"  # 429
    TRANSIENT = "transient"  # Network hiccups, 5xx
    PERMANENT = "permanent"  # Any other API error, never retried
    UNKNOWN = "unknown"  # Unclassified errors


RETRYABLE_FAILURES = frozenset(
    {FailureType.UNAUTHORIZED, FailureType.RATE_LIMITED, FailureType.TRANSIENT}
)


def classify_failure(error: BaseException) -> FailureType:
    """Classify an exception raised by a catalog call.

    Args:
        error: Exception raised by the wrapped operation

    Returns:
        FailureType used to pick the retry strategy
    """
    if isinstance(error, CatalogApiError):
        if error.status_code in (401, 403):
            return FailureType.UNAUTHORIZED
        if error.status_code == 429:
            return FailureType.RATE_LIMITED
        if error.status_code >= 500:
            return FailureType.TRANSIENT
        return FailureType.PERMANENT
    if isinstance(error, (TransientTransportError, TimeoutError, ConnectionError)):
        return FailureType.TRANSIENT
    if isinstance(error, AssetSyncError):
        # Authentication, configuration and pipeline errors are never retried
        return FailureType.PERMANENT
    return FailureType.UNKNOWN


class RetryPolicy(BaseModel):
    """Retry policy applied around every remote catalog call.

    Attributes:
        max_attempts: Total attempts including the first one (1-10)
        backoff_base_seconds: Base of the exponential delay, ``base ** attempt``
        max_delay_seconds: Upper bound for a single delay
        jitter_factor: Random jitter factor (0.0-1.0, default 0.0)
        retry_unknown_failures: Treat unclassified errors as transient
    """

    max_attempts: int = Field(default=5, ge=1, le=10)
    backoff_base_seconds: float = Field(default=2.0, ge=1.0, le=10.0)
    max_delay_seconds: float = Field(default=300.0, ge=0.0, le=3600.0)
    jitter_factor: float = Field(default=0.0, ge=0.0, le=1.0)
    retry_unknown_failures: bool = True

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay before the next attempt.

        Args:
            attempt: Number of the attempt that just failed (1-indexed)

        Returns:
            Delay in seconds, ``backoff_base_seconds ** attempt`` capped and jittered
        """
        delay = min(self.backoff_base_seconds**attempt, self.max_delay_seconds)

        if self.jitter_factor > 0 and delay > 0:
            jitter_amount = delay * self.jitter_factor
            delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))

        return delay

    def should_retry(self, failure_type: FailureType, attempt: int) -> bool:
        """Check whether another attempt is allowed.

        Args:
            failure_type: Classification of the failure
            attempt: Number of the attempt that just failed (1-indexed)

        Returns:
            True if the operation should be attempted again
        """
        if attempt >= self.max_attempts:
            return False
        if failure_type in RETRYABLE_FAILURES:
            return True
        return failure_type == FailureType.UNKNOWN and self.retry_unknown_failures


__all__ = [
    "FailureType",
    "RETRYABLE_FAILURES",
    "RetryPolicy",
    "classify_failure",
]

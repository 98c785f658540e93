"""Centralized error definitions for assetsync.

Three failure families matter to a sync run and are routed to separate
target handlers: authentication failures, pipeline failures and everything
else (which is wrapped into a generic pipeline failure before routing).

Usage:
    from assetsync.errors import ConfigurationError, format_error_for_cli

    try:
        settings.validate_for_sync()
    except ConfigurationError as e:
        print(format_error_for_cli(e))
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from assetsync.errors.user_messages import (
    format_error_for_cli,
    get_recovery_suggestion,
    get_user_message,
)


# =============================================================================
# Base Error
# =============================================================================


class AssetSyncError(Exception):
    """Base exception for all assetsync errors.

    Attributes:
        code: Error code for categorization
        recoverable: Whether a later run may succeed without operator action
        details: Additional error details for debugging
    """

    code: str = "ASSETSYNC_ERROR"
    default_message: str = "An unexpected error occurred"
    recoverable: bool = True

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Get operator-facing message."""
        return get_user_message(self)

    @property
    def recovery_suggestion(self) -> str:
        """Get recovery suggestion."""
        return get_recovery_suggestion(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "details": self.details,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(AssetSyncError):
    """A required setting is missing or invalid.

    Raised before any network call is made.
    """

    code = "CONFIGURATION_ERROR"
    default_message = "Configuration error"
    recoverable = False

    def __init__(self, message: str | None = None, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message, details={"field": field} if field else None)


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthenticationFailure(str, Enum):
    """Why authentication against the catalog failed."""

    WRONG_STATE = "wrong_state"
    CANNOT_ACQUIRE_TOKEN = "cannot_acquire_token"
    CANNOT_REFRESH_TOKEN = "cannot_refresh_token"
    GENERIC = "generic"


class AuthenticationError(AssetSyncError):
    """Token acquisition or refresh failed."""

    code = "AUTHENTICATION_ERROR"
    default_message = "Authentication failed"

    def __init__(
        self,
        reason: AuthenticationFailure = AuthenticationFailure.GENERIC,
        message: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(message, details={"reason": reason.value})


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineFailure(str, Enum):
    """Classification of an aborted sync run."""

    GENERIC = "generic"
    CONFIGURATION = "configuration"
    CAPABILITY = "capability"
    METADATA_MAPPING = "metadata_mapping"
    TRANSPORT = "transport"
    DELIVERY = "delivery"


class PipelineError(AssetSyncError):
    """The sync pipeline could not complete and the run was aborted."""

    code = "PIPELINE_ERROR"
    default_message = "Sync pipeline failed"

    def __init__(
        self,
        kind: PipelineFailure = PipelineFailure.GENERIC,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        super().__init__(message, details={"kind": kind.value})


# =============================================================================
# Catalog Errors
# =============================================================================


class CatalogApiError(AssetSyncError):
    """The catalog service answered with a non-success status."""

    code = "CATALOG_API_ERROR"
    default_message = "Catalog API request failed"

    def __init__(self, status_code: int, message: str | None = None, *, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            message or f"Catalog API error: HTTP {status_code}",
            details={"status_code": status_code},
        )


class TransientTransportError(AssetSyncError):
    """Network-level failure talking to the catalog service."""

    code = "TRANSIENT_TRANSPORT_ERROR"
    default_message = "Catalog service unreachable"


# =============================================================================
# Target Errors
# =============================================================================


class TargetDeliveryError(AssetSyncError):
    """Raised by sync targets when an import or update call fails."""

    code = "TARGET_DELIVERY_ERROR"
    default_message = "Sync target delivery failed"

    def __init__(self, message: str | None = None, *, error_code: Optional[int] = None) -> None:
        self.error_code = error_code
        super().__init__(
            message,
            details={"error_code": error_code} if error_code is not None else None,
        )


class TargetObjectAlreadyExistsError(TargetDeliveryError):
    code = "TARGET_OBJECT_EXISTS"

    def __init__(self, object_name: str) -> None:
        self.object_name = object_name
        super().__init__(f"{object_name} already exists")


class TargetObjectNotFoundError(TargetDeliveryError):
    code = "TARGET_OBJECT_NOT_FOUND"

    def __init__(self, object_id: str) -> None:
        self.object_id = object_id
        super().__init__(f"Object with ID {object_id} was not found")


class TargetUnauthorizedError(TargetDeliveryError):
    code = "TARGET_UNAUTHORIZED"

    def __init__(self, message: str | None = None) -> None:
        if message:
            message = f"Authorization with sync target failed: {message}"
        else:
            message = (
                "Authorization with sync target failed, e.g. because access token "
                "is not present or is expired"
            )
        super().__init__(message, error_code=401)


__all__ = [
    "AssetSyncError",
    "AuthenticationError",
    "AuthenticationFailure",
    "CatalogApiError",
    "ConfigurationError",
    "PipelineError",
    "PipelineFailure",
    "TargetDeliveryError",
    "TargetObjectAlreadyExistsError",
    "TargetObjectNotFoundError",
    "TargetUnauthorizedError",
    "TransientTransportError",
    "format_error_for_cli",
]

"""Operator-facing error messages for assetsync.

Maps error codes to short explanations and recovery hints so the CLI and
target error handlers never have to print raw exception text on their own.
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Message Catalog
# =============================================================================

ERROR_MESSAGES: dict[str, str] = {
    "CONFIGURATION_ERROR": "The connector configuration is incomplete or invalid.",
    "AUTHENTICATION_ERROR": "Authentication with the catalog service failed.",
    "PIPELINE_ERROR": "The synchronization run was aborted.",
    "CATALOG_API_ERROR": "The catalog service rejected a request.",
    "TRANSIENT_TRANSPORT_ERROR": "The catalog service could not be reached.",
    "TARGET_DELIVERY_ERROR": "The sync target rejected delivered data.",
    "TARGET_OBJECT_EXISTS": "The sync target reports the object already exists.",
    "TARGET_OBJECT_NOT_FOUND": "The sync target could not find the object.",
    "TARGET_UNAUTHORIZED": "The sync target refused access.",
    "ASSETSYNC_ERROR": "An unexpected error occurred.",
    "UNKNOWN_ERROR": "Something went wrong.",
}


# =============================================================================
# Recovery Suggestions
# =============================================================================

RECOVERY_SUGGESTIONS: dict[str, str] = {
    "CONFIGURATION_ERROR": "Check settings: assetsync config validate",
    "AUTHENTICATION_ERROR": "Re-authorize the connector and verify the client credentials.",
    "PIPELINE_ERROR": "The next scheduled run starts from the last committed cursor.",
    "CATALOG_API_ERROR": "Verify the tenant ID and that the connector is still licensed.",
    "TRANSIENT_TRANSPORT_ERROR": "Check network connectivity; the next run retries automatically.",
    "TARGET_DELIVERY_ERROR": "Inspect the target system logs for the rejected batch.",
    "TARGET_OBJECT_EXISTS": "Remove the duplicate in the target or reset the cursor.",
    "TARGET_OBJECT_NOT_FOUND": "Reset the cursor to re-import: assetsync cursor reset",
    "TARGET_UNAUTHORIZED": "Refresh the target credentials.",
    "ASSETSYNC_ERROR": "If this persists, please report the issue.",
    "UNKNOWN_ERROR": "Restart the connector. Report if the issue continues.",
}


# =============================================================================
# Helper Functions
# =============================================================================


def _error_code(error: Any) -> str:
    if hasattr(error, "code"):
        return error.code
    if isinstance(error, str):
        return error
    return type(error).__name__.upper()


def get_user_message(error: Any) -> str:
    """Get operator-facing message for an error or error code."""
    return ERROR_MESSAGES.get(_error_code(error), ERROR_MESSAGES["UNKNOWN_ERROR"])


def get_recovery_suggestion(error: Any) -> str:
    """Get recovery suggestion for an error or error code."""
    return RECOVERY_SUGGESTIONS.get(
        _error_code(error), RECOVERY_SUGGESTIONS["UNKNOWN_ERROR"]
    )


def format_error_for_cli(error: Any) -> str:
    """Format error for CLI output.

    Args:
        error: The error to format

    Returns:
        Multi-line message with code, explanation, suggestion and details
    """
    code = getattr(error, "code", "ERROR")
    lines = [
        f"Error [{code}]: {get_user_message(error)}",
        "",
        f"Suggestion: {get_recovery_suggestion(error)}",
    ]

    details = getattr(error, "details", None)
    if details:
        lines.append("")
        lines.append("Details:")
        for key, value in details.items():
            if key not in ("access_token", "refresh_token", "client_secret"):
                lines.append(f"  {key}: {value}")

    return "\n".join(lines)


__all__ = [
    "ERROR_MESSAGES",
    "RECOVERY_SUGGESTIONS",
    "get_user_message",
    "get_recovery_suggestion",
    "format_error_for_cli",
]

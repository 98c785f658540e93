"""Typed settings for the asset sync engine.

Settings are wrapped in Pydantic models so the pipeline, the authenticator and
the CLI can rely on validated values. Sync, push and authenticator each need a
different subset of the settings; the ``validate_for_*`` methods check exactly
that subset and name the missing field in the raised error.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from ..errors import ConfigurationError
from ..orchestrator.retry_policy import RetryPolicy


DEFAULT_CONFIG_PATH = Path.home() / ".assetsync" / "settings.yaml"
DEFAULT_CURSOR_PATH = Path.home() / ".assetsync" / "state" / "cursor.json"
ENV_PREFIX = "ASSETSYNC_"


class SyncSettings(BaseModel):
    """Root configuration state for one connector instance."""

    tenant_id: Optional[str] = Field(default=None, description="Catalog tenant identifier")
    channel_id: Optional[int] = Field(default=None, description="Push notification channel")
    import_languages: List[str] = Field(default_factory=list)

    client_id: Optional[str] = None
    client_secret: Optional[SecretStr] = None
    redirect_uri: Optional[str] = None

    catalog_url_template: str = "https://{tenant_id}.clapi.smint.io/consumer/v1"
    token_url_template: str = "https://{tenant_id}.smint.io/connect/token"
    catalog_ui_url_template: str = (
        "https://{tenant_id}.smint.io/project/{project_uuid}/content-element/{content_element_uuid}"
    )

    page_size: int = Field(default=10, ge=1, le=100)
    sync_interval_minutes: int = Field(default=30, ge=1)
    cursor_path: Path = Field(default=DEFAULT_CURSOR_PATH)
    temp_root: Optional[Path] = Field(
        default=None, description="Parent of the per-run download folder (system temp if unset)"
    )
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("import_languages", mode="before")
    @classmethod
    def _split_languages(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("import_languages")
    @classmethod
    def _normalize_languages(cls, value: List[str]) -> List[str]:
        seen: List[str] = []
        for language in value:
            language = language.strip().lower()
            if language and language not in seen:
                seen.append(language)
        return seen

    @property
    def catalog_base_url(self) -> str:
        return self.catalog_url_template.format(tenant_id=self.tenant_id)

    @property
    def token_url(self) -> str:
        return self.token_url_template.format(tenant_id=self.tenant_id)

    def validate_for_sync(self) -> None:
        """Check the settings a sync run needs.

        Raises:
            ConfigurationError: If the tenant or the import languages are missing
        """
        if not self.tenant_id:
            raise ConfigurationError("The tenant ID is missing", field="tenant_id")
        if not self.import_languages:
            raise ConfigurationError("The import languages are missing", field="import_languages")

    def validate_for_push(self) -> None:
        """Check the settings a push subscription needs."""
        self.validate_for_sync()
        if not self.channel_id or self.channel_id <= 0:
            raise ConfigurationError("The channel ID is missing", field="channel_id")

    def validate_for_authenticator(self) -> None:
        """Check the settings the OAuth token refresh needs."""
        if not self.tenant_id:
            raise ConfigurationError("The tenant ID is missing", field="tenant_id")
        if not self.client_id:
            raise ConfigurationError("The client ID is missing", field="client_id")
        if self.client_secret is None or not self.client_secret.get_secret_value():
            raise ConfigurationError("The client secret is missing", field="client_secret")
        if not self.redirect_uri:
            raise ConfigurationError("The redirect URI is missing", field="redirect_uri")


class SettingsProvider(Protocol):
    """Read-only source of the current settings snapshot."""

    def get_settings(self) -> SyncSettings:
        ...


class StaticSettingsProvider:
    """Serves a fixed settings object, used for embedding and tests."""

    def __init__(self, settings: SyncSettings) -> None:
        self._settings = settings

    def get_settings(self) -> SyncSettings:
        return self._settings


class FileSettingsProvider:
    """Loads settings from a JSON or YAML file with environment overrides.

    The file is read on every call so edits are picked up by the next run.
    """

    def __init__(self, path: Path = DEFAULT_CONFIG_PATH) -> None:
        self.path = path

    def get_settings(self) -> SyncSettings:
        return load_settings(self.path)


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> SyncSettings:
    """Load settings from disk, apply ``ASSETSYNC_*`` overrides and validate.

    A missing file is not an error; defaults plus environment overrides are
    used instead.

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    payload: Dict[str, Any] = {}
    if path.exists():
        payload = _read_payload(path)

    payload = _apply_env_overrides(payload)

    try:
        return SyncSettings.model_validate(payload)
    except ValidationError as exc:
        error_details = [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(error_details)}"
        ) from exc


def save_settings(settings: SyncSettings, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist settings; the client secret is never written to disk."""

    payload = settings.model_dump(mode="json", exclude={"client_secret"})
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".json":
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(payload, f, default_flow_style=False, sort_keys=False)


def _read_payload(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot parse settings file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    return data


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(data)
    _set_env_override(merged, "tenant_id", "TENANT_ID")
    _set_env_override(merged, "channel_id", "CHANNEL_ID", cast_int=True)
    _set_env_override(merged, "import_languages", "IMPORT_LANGUAGES")
    _set_env_override(merged, "client_id", "CLIENT_ID")
    _set_env_override(merged, "client_secret", "CLIENT_SECRET")
    _set_env_override(merged, "redirect_uri", "REDIRECT_URI")
    _set_env_override(merged, "page_size", "PAGE_SIZE", cast_int=True)
    _set_env_override(merged, "sync_interval_minutes", "SYNC_INTERVAL_MINUTES", cast_int=True)
    _set_env_override(merged, "cursor_path", "CURSOR_PATH")
    _set_env_override(merged, "temp_root", "TEMP_ROOT")
    return merged


def _set_env_override(
    mapping: Dict[str, Any],
    key: str,
    env_suffix: str,
    *,
    cast_int: bool = False,
) -> None:
    raw = os.getenv(ENV_PREFIX + env_suffix)
    if raw is None:
        return
    if cast_int:
        try:
            mapping[key] = int(raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"{ENV_PREFIX + env_suffix} must be an integer", field=key
            ) from exc
    else:
        mapping[key] = raw


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FileSettingsProvider",
    "SettingsProvider",
    "StaticSettingsProvider",
    "SyncSettings",
    "load_settings",
    "save_settings",
]

"""Configuration loading utilities for assetsync."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    FileSettingsProvider,
    SettingsProvider,
    StaticSettingsProvider,
    SyncSettings,
    load_settings,
    save_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FileSettingsProvider",
    "SettingsProvider",
    "StaticSettingsProvider",
    "SyncSettings",
    "load_settings",
    "save_settings",
]

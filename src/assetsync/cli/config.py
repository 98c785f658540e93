"""Configuration commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from assetsync.configuration.settings import DEFAULT_CONFIG_PATH, SyncSettings, load_settings
from assetsync.errors import AssetSyncError, format_error_for_cli

console = Console()
error_console = Console(stderr=True)
config_app = typer.Typer(help="Manage assetsync configuration")


def _summarize(settings: SyncSettings) -> Table:
    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Tenant", settings.tenant_id or "-")
    table.add_row("Channel", str(settings.channel_id or "-"))
    table.add_row("Languages", ", ".join(settings.import_languages) or "-")
    table.add_row("Client secret", "set" if settings.client_secret else "-")
    table.add_row("Catalog URL", settings.catalog_base_url if settings.tenant_id else "-")
    table.add_row("Interval (minutes)", str(settings.sync_interval_minutes))
    table.add_row("Cursor file", str(settings.cursor_path))
    return table


@config_app.command("validate")
def validate_config(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings file"),
    push: bool = typer.Option(False, "--push", help="Also require push notification settings"),
    auth: bool = typer.Option(False, "--auth", help="Also require token refresh settings"),
) -> None:
    """Check that the settings allow syncing."""

    try:
        settings = load_settings(config_path)
        settings.validate_for_sync()
        if push:
            settings.validate_for_push()
        if auth:
            settings.validate_for_authenticator()
    except AssetSyncError as exc:
        error_console.print(format_error_for_cli(exc))
        raise typer.Exit(code=1) from exc

    console.print(_summarize(settings))
    console.print("[green]Configuration is valid[/green]")


__all__ = ["config_app"]

"""Sync commands: ``run`` and ``sync-once``."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from assetsync.auth.refresher import MemoryTokenStore, OAuthTokenRefresher
from assetsync.catalog.resilient import ResilientApiAccess
from assetsync.configuration.settings import (
    DEFAULT_CONFIG_PATH,
    StaticSettingsProvider,
    SyncSettings,
    load_settings,
)
from assetsync.errors import AssetSyncError, format_error_for_cli
from assetsync.orchestrator.push import PushEventBridge
from assetsync.state.cursor_store import JsonCursorStore
from assetsync.sync.client import SyncClient
from assetsync.sync.pipeline import SyncOrchestrator, SyncRunReport
from assetsync.target.memory import InMemorySyncTarget

console = Console()
error_console = Console(stderr=True)


@dataclass
class _Runtime:
    settings: SyncSettings
    provider: StaticSettingsProvider
    api: ResilientApiAccess
    target: InMemorySyncTarget
    orchestrator: SyncOrchestrator


def _load(config_path: Path) -> SyncSettings:
    try:
        return load_settings(config_path)
    except AssetSyncError as exc:
        error_console.print(format_error_for_cli(exc))
        raise typer.Exit(code=1) from exc


def _build_runtime(
    settings: SyncSettings,
    access_token: Optional[str],
    refresh_token: Optional[str],
) -> _Runtime:
    provider = StaticSettingsProvider(settings)
    auth = OAuthTokenRefresher(provider, MemoryTokenStore.from_tokens(access_token, refresh_token))
    api = ResilientApiAccess(provider, auth)
    target = InMemorySyncTarget()
    orchestrator = SyncOrchestrator(
        settings_provider=provider,
        catalog=api,
        target=target,
        cursor_store=JsonCursorStore(settings.cursor_path),
    )
    return _Runtime(settings, provider, api, target, orchestrator)


def _print_report(report: SyncRunReport) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Metadata sync", "yes" if report.full_metadata_sync else "no")
    table.add_row("Metadata categories", str(report.metadata_categories))
    table.add_row("Pages", str(report.pages))
    table.add_row("Raw assets", str(report.raw_assets))
    table.add_row("New binary assets", str(report.new_binaries))
    table.add_row("Updated binary assets", str(report.updated_binaries))
    table.add_row("New compound assets", str(report.new_compounds))
    table.add_row("Updated compound assets", str(report.updated_compounds))
    if report.aborted_at:
        table.add_row("Aborted by", f"[yellow]{report.aborted_at}[/yellow]")

    console.print(table)


def sync_once(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings file"),
    with_metadata: bool = typer.Option(
        True, "--with-metadata/--no-metadata", help="Import generic metadata before assets"
    ),
    access_token: Optional[str] = typer.Option(
        None, envvar="ASSETSYNC_ACCESS_TOKEN", help="Catalog access token"
    ),
    refresh_token: Optional[str] = typer.Option(
        None, envvar="ASSETSYNC_REFRESH_TOKEN", help="OAuth refresh token"
    ),
) -> None:
    """Run the sync pipeline once against the in-memory target."""

    settings = _load(config_path)
    runtime = _build_runtime(settings, access_token, refresh_token)

    async def _once() -> SyncRunReport:
        try:
            return await runtime.orchestrator.run(with_metadata)
        finally:
            await runtime.api.aclose()

    report = asyncio.run(_once())
    _print_report(report)

    if report.error is not None:
        error_console.print(format_error_for_cli(report.error))
        raise typer.Exit(code=1)

    console.print("[green]Sync finished[/green]")


def run(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings file"),
    access_token: Optional[str] = typer.Option(
        None, envvar="ASSETSYNC_ACCESS_TOKEN", help="Catalog access token"
    ),
    refresh_token: Optional[str] = typer.Option(
        None, envvar="ASSETSYNC_REFRESH_TOKEN", help="OAuth refresh token"
    ),
) -> None:
    """Keep syncing on the configured interval until interrupted."""

    settings = _load(config_path)
    runtime = _build_runtime(settings, access_token, refresh_token)
    client = SyncClient(
        settings_provider=runtime.provider,
        orchestrator=runtime.orchestrator,
        push_source=PushEventBridge(),
    )

    async def _serve() -> None:
        await client.start()
        try:
            await asyncio.Event().wait()
        finally:
            await client.stop(wait=False)
            await runtime.api.aclose()

    console.print(
        f"Syncing tenant [bold]{settings.tenant_id}[/bold] every "
        f"{settings.sync_interval_minutes} minutes. Press Ctrl+C to stop."
    )
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        console.print("Stopped")
    except AssetSyncError as exc:
        error_console.print(format_error_for_cli(exc))
        raise typer.Exit(code=1) from exc


__all__ = ["run", "sync_once"]

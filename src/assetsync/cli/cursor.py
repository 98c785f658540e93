"""Commands for inspecting and resetting the persisted sync cursor."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from assetsync.configuration.settings import DEFAULT_CONFIG_PATH, load_settings
from assetsync.state.cursor_store import JsonCursorStore

console = Console()
cursor_app = typer.Typer(help="Inspect or reset the sync cursor")


def _store(config_path: Path, cursor_path: Optional[Path]) -> JsonCursorStore:
    if cursor_path is not None:
        return JsonCursorStore(cursor_path.expanduser())
    return JsonCursorStore(load_settings(config_path).cursor_path)


@cursor_app.command("show")
def show_cursor(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings file"),
    cursor_path: Optional[Path] = typer.Option(None, "--cursor-path", help="Cursor file override"),
) -> None:
    """Print the last committed cursor."""

    cursor = _store(config_path, cursor_path).get_cursor()
    if cursor is None:
        console.print("No cursor stored, the next sync starts from the beginning")
        return
    console.print(json.dumps(cursor.model_dump(mode="json"), indent=2))


@cursor_app.command("reset")
def reset_cursor(
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", help="Path to settings file"),
    cursor_path: Optional[Path] = typer.Option(None, "--cursor-path", help="Cursor file override"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop the cursor so the next sync re-imports everything."""

    if not yes:
        typer.confirm("Reset the sync cursor and re-import all assets?", abort=True)
    _store(config_path, cursor_path).reset()
    console.print("[green]Cursor reset[/green]")


__all__ = ["cursor_app"]

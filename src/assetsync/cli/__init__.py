"""Command line entry points for assetsync."""

import logging

import typer
from rich.logging import RichHandler
from typer import Typer

from .config import config_app
from .cursor import cursor_app
from .sync import run, sync_once


cli = Typer(help="Synchronize licensed catalog assets into a sync target")


@cli.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Configure logging once for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


cli.command("run")(run)
cli.command("sync-once")(sync_once)
cli.add_typer(cursor_app, name="cursor")
cli.add_typer(config_app, name="config")

__all__ = ["cli", "config_app", "cursor_app"]

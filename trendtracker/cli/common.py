"""Helpers shared by the CLI command modules."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from trendtracker.config import Settings, load_settings
from trendtracker.db.store import DataStore
from trendtracker.log import setup_logging

console = Console()


def error_panel(message: str, error: Optional[BaseException] = None) -> None:
    """Print a red error panel."""
    body = f"[red]{message}[/red]"
    if error is not None:
        body += f"\n\n{error}"
    console.print(Panel(body, title="[bold red]Error[/bold red]", border_style="red"))


def get_settings(ctx: click.Context) -> Settings:
    """Load settings once per invocation and configure logging."""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        config_path: Optional[Path] = obj.get("config_path")
        try:
            settings = load_settings(config_path)
        except ValueError as e:
            error_panel("Failed to load configuration:", e)
            raise SystemExit(1)
        setup_logging(settings.logging.level, settings.logging.file)
        obj["settings"] = settings
    return obj["settings"]


def get_data_store(ctx: click.Context) -> DataStore:
    """Get the data store instance."""
    settings = get_settings(ctx)
    return DataStore(settings.database.path, timeout=settings.database.timeout_seconds)

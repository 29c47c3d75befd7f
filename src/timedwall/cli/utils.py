"""
Utility functions for the CLI.
"""

import sys
import typer
import logging
from pathlib import Path
from typing import Optional
from rich.console import Console

from timedwall.config import ConfigManager
from timedwall.errors import TimedWallError
from timedwall.models import Timeline
from timedwall.schedule import ScheduleManager
from timedwall.validate import TimelineValidator


def get_app_state(verbose: bool) -> dict:
    """
    Get the current state of the application
    """

    console = Console()

    logger = logging.getLogger("timedwall")
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO
    logging.basicConfig(
        level=log_level,
        format="(%(name)s) %(message)s",
    )

    # Initialize configuration
    try:
        config_manager = ConfigManager()
    except Exception as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(1)

    return {
        "console": console,
        "logger": logger,
        "verbose": verbose,
        "config_manager": config_manager,
        "schedule_manager": ScheduleManager(),
        "validator": TimelineValidator(),
    }


def resolve_timeline_path(ctx: typer.Context, path: Optional[Path]) -> Path:
    """The given path, or the configured timeline if none was given"""
    console = ctx.obj["console"]
    if path is not None:
        return path

    configured = ctx.obj["config_manager"].get_timeline_path()
    if configured is None:
        console.print("🚫 No timeline given and none configured")
        console.print("✨ Run [turquoise4]'timedwall config set timeline.path PATH'[/] to set one")
        raise typer.Exit(1)
    return configured


def load_timeline(ctx: typer.Context, path: Optional[Path], strict: bool = True) -> Timeline:
    """Load a timeline for a command, exiting with a message on failure"""
    console = ctx.obj["console"]
    path = resolve_timeline_path(ctx, path)

    try:
        return ctx.obj["schedule_manager"].load_timeline(path, strict=strict)
    except TimedWallError as e:
        console.print(f"[red]Error loading timeline:[/] {str(e)}")
        raise typer.Exit(1)


def format_duration(seconds: float) -> str:
    """Format a duration in seconds as e.g. "2h 5m" """
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    return f"{secs}s"

"""
Command group of logs-related commands for the timedwall CLI
"""

import typer
import shutil
import time
from pathlib import Path
from typing import Optional
from rich.console import Console
from typing_extensions import Annotated


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="View and manage daemon logs",
)

LOG_FILE_NAME = "timedwall.log"

# Levels as written by the daemon's "asctime - name - levelname - message" format
LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold red",
}


def _log_file(ctx: typer.Context) -> Optional[Path]:
    log_file = ctx.obj["config_manager"].get_logs_dir() / LOG_FILE_NAME
    if not log_file.exists():
        console.print(f"[yellow]No daemon log yet[/] [dim]({log_file})[/]")
        return None
    return log_file


def _line_level(line: str) -> Optional[str]:
    for level in LEVEL_STYLES:
        if f" - {level} - " in line:
            return level
    return None


@app.command()
def show(
    ctx: typer.Context,
    lines: Annotated[int, typer.Option("--lines", "-n", help="Number of lines to show")] = 50,
    level: Annotated[Optional[str], typer.Option("--level", "-l", help="Only show entries of this level, e.g. ERROR", show_default=False)] = None,
):
    """Show recent daemon log entries"""

    log_file = _log_file(ctx)
    if log_file is None:
        return

    wanted = level.upper() if level else None
    if wanted and wanted not in LEVEL_STYLES:
        console.print(f"[red]Unknown level {level}[/], expected one of {', '.join(LEVEL_STYLES)}")
        raise typer.Exit(1)

    try:
        entries = log_file.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        console.print(f"[red]Error reading log file:[/] {str(e)}")
        raise typer.Exit(1)

    if wanted:
        entries = [line for line in entries if _line_level(line) == wanted]
    entries = entries[-lines:]

    console.print(f"[bold]Last {len(entries)} daemon log entries[/]" + (f" [dim]({wanted})[/]" if wanted else ""))
    for line in entries:
        console.print(line, style=LEVEL_STYLES.get(_line_level(line), ""), markup=False, highlight=False)


@app.command()
def clear(
    ctx: typer.Context,
    keep: Annotated[int, typer.Option("--keep", "-k", help="Number of backups to keep")] = 3,
):
    """Empty the daemon log, keeping a backup of its contents"""

    log_file = _log_file(ctx)
    if log_file is None:
        return

    try:
        backup_file = log_file.with_name(f"{LOG_FILE_NAME}.{int(time.time())}.bak")
        shutil.copy2(log_file, backup_file)
        # Truncate in place, the daemon keeps its handle open
        log_file.write_text("", encoding="utf-8")

        backups = sorted(log_file.parent.glob(f"{LOG_FILE_NAME}.*.bak"))
        for old in backups[:-keep] if keep > 0 else backups:
            old.unlink()
    except OSError as e:
        console.print(f"[red]Error clearing log file:[/] {str(e)}")
        raise typer.Exit(1)

    console.print("[green]Daemon log cleared[/]")
    if keep > 0:
        console.print(f"[dim]Backup created at: {backup_file}[/]")

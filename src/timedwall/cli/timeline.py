"""
Command group of timeline-related commands for the timedwall CLI
"""

import typer
from datetime import datetime
from pathlib import Path
from rich import box
from rich.table import Table
from rich.console import Console
from typing_extensions import Annotated

from timedwall.errors import TimedWallError
from timedwall.models import StaticEvent, TimePoint, TransitionEvent
from timedwall.timeline import (
    event_window, next_event_with_distance, prev_event_with_distance, transition_ratio
)
from timedwall.cli.utils import format_duration, load_timeline


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Inspect and run timed wallpapers",
)

PathArgument = Annotated[
    Path,
    typer.Argument(help="Timed wallpaper file (.stw or GNOME .xml), defaults to the configured one", show_default=False),
]


@app.command(
    rich_help_panel="📋 View"
)
def show(
    ctx: typer.Context,
    path: PathArgument = None,
    raw: bool = typer.Option(False, "--raw", "-r", help="Print in the simple timed wallpaper format"),
):
    """Lists the events of a timed wallpaper"""

    timeline = load_timeline(ctx, path, strict=False)

    if raw:
        # Plain print, so the output can be redirected to a .stw file
        print(timeline.dump(), end="")
        return

    table = Table(
        box=box.ROUNDED,
        border_style="bright_black",
        title=f"[bold]{timeline.name or timeline.path}[/]",
        title_justify="left",
    )
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Type")
    table.add_column("Images")

    for event in sorted(timeline.events, key=lambda e: e.start.seconds):
        end = event.start + event_window(timeline, event)
        if isinstance(event, StaticEvent):
            table.add_row(str(event.start), str(end), "static", event.image)
        elif isinstance(event, TransitionEvent):
            table.add_row(str(event.start), str(end), f"transition ({event.mode})", f"{event.from_image}\n→ {event.to_image}")

    console.print(table)


@app.command(
    rich_help_panel="📋 View"
)
def now(
    ctx: typer.Context,
    path: PathArgument = None,
    at: str = typer.Option(None, "--at", "-a", help="Time of day to check instead of now (HH:MM)", show_default=False),
):
    """Shows which event is active and what comes next"""

    timeline = load_timeline(ctx, path)

    try:
        point = TimePoint.parse(at) if at else TimePoint.from_datetime(datetime.now())
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    try:
        current, elapsed = prev_event_with_distance(timeline, point)
        upcoming, remaining = next_event_with_distance(timeline, point)
    except TimedWallError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)

    console.print(f"\n🕒 [bold]{point}[/]\n")
    if isinstance(current, TransitionEvent):
        ratio = transition_ratio(current, point)
        console.print(f"  ✨ Transition {current.start}-{current.up_to} [green]{int(ratio * 100)}%[/] complete")
        console.print(f"     [dim]{current.from_image} → {current.to_image}[/]")
    else:
        console.print(f"  ✨ Static since {current.start} ([green]{format_duration(elapsed.total_seconds())}[/] ago)")
        console.print(f"     [dim]{current.image}[/]")

    console.print(f"  ⏭️  Next: {upcoming.describe(timeline.format)} in [yellow]{format_duration(remaining.total_seconds())}[/]\n")


@app.command(
    rich_help_panel="📋 View"
)
def validate(
    ctx: typer.Context,
    path: PathArgument = None,
):
    """Checks a timed wallpaper for problems"""

    timeline = load_timeline(ctx, path, strict=False)
    result = ctx.obj["validator"].validate(timeline)

    for key, messages in result.errors.items():
        for message in messages:
            console.print(f"  ❗ [red]{key.upper()}:[/] {message}")
    for key, messages in result.warnings.items():
        for message in messages:
            console.print(f"  ⚠️ [yellow]{key.upper()}:[/] {message}")

    if result.failed:
        console.print(f"\n🚫 {timeline} is not valid")
        raise typer.Exit(1)
    console.print(f"\n✅ {timeline} is valid")


@app.command(
    rich_help_panel="🚀 Run"
)
def run(
    ctx: typer.Context,
    path: PathArgument = None,
):
    """Runs the timed wallpaper in the foreground (SIGHUP/SIGUSR1 refresh it)"""

    from timedwall.service import build_daemon

    config_manager = ctx.obj["config_manager"]
    try:
        daemon = build_daemon(config_manager, path)
    except (TimedWallError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        raise typer.Exit(1)

    console.print(f"✨ Running {daemon.timeline} (Ctrl+C to stop)")
    daemon.install_signal_handlers()
    try:
        daemon.run()
    except KeyboardInterrupt:
        console.print("\n👋 Stopped")
    except TimedWallError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        raise typer.Exit(1)

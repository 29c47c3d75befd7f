"""
Main application entry point for the timedwall CLI
"""

import typer
from pathlib import Path
from rich.console import Console
from typing_extensions import Annotated

from timedwall.cli import config, logs, timeline
from timedwall.cli.utils import get_app_state


console = Console()

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Main command groups
app.add_typer(timeline.app, name="timeline", help="Inspect and run timed wallpapers", rich_help_panel="📋 Main Commands")
app.add_typer(config.app, name="config", help="Manage timedwall configuration", rich_help_panel="📋 Main Commands")
app.add_typer(logs.app, name="logs", help="View and manage daemon logs", rich_help_panel="📋 Main Commands")


# aliases for commonly used subcommands
@app.command(
        name="run",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]timedwall timeline run[/]"
)
def alias_run(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Timed wallpaper file", show_default=False)] = None,
):
    """Runs the timed wallpaper in the foreground"""

    timeline.run(ctx, path)


@app.command(
        name="show",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]timedwall timeline show[/]"
)
def alias_show(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Timed wallpaper file", show_default=False)] = None,
    raw: bool = typer.Option(False, "--raw", "-r", help="Print in the simple timed wallpaper format"),
):
    """Lists the events of a timed wallpaper"""

    timeline.show(ctx, path, raw)


@app.command(
        name="now",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]timedwall timeline now[/]"
)
def alias_now(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Timed wallpaper file", show_default=False)] = None,
    at: str = typer.Option(None, "--at", "-a", help="Time of day to check instead of now (HH:MM)", show_default=False),
):
    """Shows which event is active and what comes next"""

    timeline.now(ctx, path, at)


@app.command(
        name="validate",
        rich_help_panel="✨ Quick Access",
        epilog="📝 this is an alias for [turquoise4]timedwall timeline validate[/]"
)
def alias_validate(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Timed wallpaper file", show_default=False)] = None,
):
    """Checks a timed wallpaper for problems"""

    timeline.validate(ctx, path)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version information"),
    ):

    if version:
        from importlib.metadata import version
        console.print(f"timedwall v{version('timedwall')}")
        raise typer.Exit()

    # Initialize the application state
    ctx.obj = get_app_state(verbose=verbose)


if __name__ == "__main__":
    app()

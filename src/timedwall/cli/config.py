"""
Command group of config-related commands for the timedwall CLI
"""

import typer
from rich.console import Console
from typing_extensions import Annotated

from timedwall.config import ConfigError


console = Console()
app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Manage timedwall configuration",
)


def _print_issues(validation) -> None:
    if validation.failed or validation.warnings:
        console.print("\n[bold yellow]Configuration Issues:[/]")
        for key, result in validation.errors.items():
            for item in result:
                console.print(f"  ❗ [red]{key.upper()}:[/] {item}")
        for key, result in validation.warnings.items():
            for item in result:
                console.print(f"  ⚠️ [yellow]{key.upper()}:[/] {item}")


@app.command(
    rich_help_panel="📋 View & Edit"
)
def show(
    ctx: typer.Context
):
    """Prints the global config in a human-readable format"""

    config_manager = ctx.obj.get("config_manager")

    # Timeline section
    console.print("\n[bold cyan]Timeline[/]\n", style="bold cyan")
    timeline_path = config_manager.get_timeline_path()
    if timeline_path:
        console.print(f"  📂 [yellow]{timeline_path}[/]")
    else:
        console.print("  ⚠️ No timeline configured")

    # Daemon section
    console.print("\n[bold cyan]Daemon[/]\n", style="bold cyan")
    console.print(f"  🕒 Loop wait: [green]{config_manager.get_loop_wait().total_seconds():g}s[/]")
    console.print(f"  🖼️ Blended image: [dim]{config_manager.get_temp_image()}[/]")

    # Engine section
    console.print("\n[bold cyan]Engine[/]\n", style="bold cyan")
    command = config_manager.get_engine_command()
    if command:
        console.print(f"  🔧 Command: [yellow]{command}[/]")
    else:
        console.print("  🔧 Automatic (GNOME, KDE, feh, macOS or Windows)")

    _print_issues(config_manager.validate_config())
    console.print()


@app.command(
    name="set",
    rich_help_panel="📋 View & Edit",
    no_args_is_help=True,
)
def set_value(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Key to set, e.g. daemon.loop_wait", show_default=False)],
    value: Annotated[str, typer.Argument(help="New value", show_default=False)],
):
    """Sets a configuration value"""

    config_manager = ctx.obj.get("config_manager")
    try:
        saved = config_manager.set_value(key, value)
    except ConfigError as e:
        console.print(f"🚫 [red]{e}[/]")
        raise typer.Exit(1)

    if not saved:
        console.print(f"🚫 Could not set {key}, see the messages above")
        raise typer.Exit(1)
    console.print(f"✅ Set [cyan]{key}[/] to [yellow]{value}[/]")


@app.command(
    rich_help_panel="📋 View & Edit"
)
def path(
    ctx: typer.Context
):
    """Prints the path of the global config file"""

    config_manager = ctx.obj.get("config_manager")
    console.print(str(config_manager.config_file_path))

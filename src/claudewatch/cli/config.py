"""
Config commands: init, show, path.
"""

from typing import Annotated

import typer
from rich import print as rprint

from ._shared import config_app


CONFIG_TEMPLATE = """\
# claudewatch configuration
# Location: ~/.claudewatch/config.yaml

# Workspaces used when no paths are given on the command line
# workspaces:
#   - ~/src/api
#   - ~/src/web

# Detection and scheduling (seconds)
# monitor:
#   recompute_interval: 5
#   process_rescan_interval: 30
#   executing_threshold: 30
#   waiting_min_age: 10
#   waiting_window: 300
#   recently_finished_window: 1800
#   session_max_age: 86400   # null lists every session file
#   agent_process_name: claude
"""


@config_app.callback(invoke_without_command=True)
def config_default(ctx: typer.Context):
    """Show current configuration (default when no subcommand given)."""
    if ctx.invoked_subcommand is None:
        _config_show()


@config_app.command("init")
def config_init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config file")
    ] = False,
):
    """Create a config file with documented defaults.

    Creates ~/.claudewatch/config.yaml with all options commented out.
    Use --force to overwrite an existing config file.
    """
    from .. import config

    path = config.CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists() and not force:
        rprint(f"[yellow]Config file already exists:[/yellow] {path}")
        rprint("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    path.write_text(CONFIG_TEMPLATE)
    rprint(f"[green]✓[/green] Created config file: [bold]{path}[/bold]")


@config_app.command("show")
def config_show():
    """Show current configuration."""
    _config_show()


def _config_show():
    from .. import config
    from ..settings import MonitorSettings

    path = config.CONFIG_PATH
    if not path.exists():
        rprint(f"[dim]No config file found at {path}[/dim]")
        rprint("[dim]Run 'claudewatch config init' to create one[/dim]")
        return

    data = config.load_config()
    if not data:
        rprint(f"[dim]Config file is empty: {path}[/dim]")
        return

    rprint(f"[bold]Configuration[/bold] ({path}):\n")

    workspaces = config.get_workspaces_config()
    if workspaces:
        rprint(f"  workspaces: {len(workspaces)} configured")
        for w in workspaces:
            rprint(f"    - {w}")

    section = config.get_monitor_config()
    if section:
        settings = MonitorSettings.from_config(section)
        rprint("  monitor:")
        for key in section:
            if hasattr(settings, key):
                rprint(f"    {key}: {getattr(settings, key)}")
            else:
                rprint(f"    [dim]{key}: (unknown, ignored)[/dim]")


@config_app.command("path")
def config_path():
    """Show the config file path."""
    from .. import config

    print(config.CONFIG_PATH)

"""
Shared CLI state: Typer apps, console, options, and utilities.
"""

import os
import time
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..status_constants import StatusInfo, get_status_label, get_status_symbol

# Main app
app = typer.Typer(
    name="claudewatch",
    help="Show what Claude Code is doing in each of your workspaces",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()

WorkspacesArg = Annotated[
    Optional[List[str]],
    typer.Argument(help="Workspace directories (default: config `workspaces:`, then cwd)"),
]

VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging"),
]


def resolve_workspaces(paths: Optional[List[str]]) -> List[str]:
    """Workspaces from arguments, else the config file, else the cwd."""
    if paths:
        return [os.path.abspath(os.path.expanduser(p)) for p in paths]

    from ..config import get_workspaces_config

    configured = get_workspaces_config()
    if configured:
        return configured
    return [os.getcwd()]


def format_age(timestamp: Optional[float], now: Optional[float] = None) -> str:
    """Human-readable age like '42s ago', '5m ago', '3h ago'."""
    if timestamp is None:
        return "-"
    now = time.time() if now is None else now
    seconds = max(0, int(now - timestamp))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def build_status_table(rows: List[tuple], now: Optional[float] = None) -> Table:
    """Render (workspace, StatusInfo or None) pairs as a rich table."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("", width=1)
    table.add_column("Workspace")
    table.add_column("Status")
    table.add_column("Last message", justify="right")
    table.add_column("Sessions", justify="right")

    for workspace, info in rows:
        name = os.path.basename(workspace) or workspace
        if info is None:
            table.add_row("?", name, "[dim]unknown[/dim]", "-", "-")
            continue
        symbol, color = get_status_symbol(info.status)
        table.add_row(
            f"[{color}]{symbol}[/{color}]" if symbol else "",
            name,
            f"[{color}]{get_status_label(info.status)}[/{color}]",
            format_age(info.last_message_time, now),
            str(info.conversation_count),
        )
    return table


def build_monitor(verbose: bool = False, event_logger=None):
    """Monitor configured from the config file, with CLI logging set up."""
    from ..logging_config import setup_cli_logging
    from ..monitor import ClaudeStatusMonitor
    from ..settings import load_monitor_settings

    setup_cli_logging(verbose)
    return ClaudeStatusMonitor(settings=load_monitor_settings(), event_logger=event_logger)


def status_summary(info: Optional[StatusInfo]) -> str:
    if info is None:
        return "[dim]unknown[/dim]"
    symbol, color = get_status_symbol(info.status)
    return f"[{color}]{symbol} {get_status_label(info.status)}[/{color}]"

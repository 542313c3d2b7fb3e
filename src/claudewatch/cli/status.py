"""
Status commands: status, watch, ack, touch.
"""

import time
from typing import Annotated

import typer
from rich import print as rprint

from ._shared import (
    VerboseOption,
    WorkspacesArg,
    app,
    build_monitor,
    build_status_table,
    console,
    resolve_workspaces,
    status_summary,
)


@app.command()
def status(
    paths: WorkspacesArg = None,
    as_json: Annotated[
        bool, typer.Option("--json", help="Print machine-readable JSON")
    ] = False,
    verbose: VerboseOption = False,
):
    """Show the current status of each workspace once."""
    monitor = build_monitor(verbose)
    workspaces = resolve_workspaces(paths)
    keys = monitor.set_workspaces(workspaces)
    monitor.refresh_processes()

    rows = [(key, monitor.get_status(key)) for key in keys]

    if as_json:
        import json

        data = {key: (info.to_dict() if info else None) for key, info in rows}
        print(json.dumps(data, indent=2))
        return

    console.print(build_status_table(rows))


@app.command()
def watch(
    paths: WorkspacesArg = None,
    log_file: Annotated[
        bool, typer.Option("--log/--no-log", help="Mirror events to the state-dir log file")
    ] = True,
    verbose: VerboseOption = False,
):
    """Monitor workspaces and print every status change until Ctrl-C."""
    from ..monitor_logging import MonitorLogger
    from ..settings import ensure_state_dir, get_log_path

    path = None
    if log_file:
        ensure_state_dir()
        path = get_log_path()
    event_logger = MonitorLogger(log_file=path)

    monitor = build_monitor(verbose, event_logger=event_logger)
    keys = monitor.set_workspaces(resolve_workspaces(paths))

    event_logger.info(f"Watching {len(keys)} workspace(s), Ctrl-C to stop")
    with monitor:
        console.print(build_status_table([(key, monitor.get_status(key)) for key in keys]))
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            pass
    event_logger.info("Stopped")


@app.command()
def ack(
    path: Annotated[str, typer.Argument(help="Workspace directory")] = ".",
    no_touch: Annotated[
        bool, typer.Option("--no-touch", help="Do not notify other monitors")
    ] = False,
    verbose: VerboseOption = False,
):
    """Acknowledge a workspace's current status.

    Also touches its newest session file so other monitors drop
    "recently finished" too (disable with --no-touch).
    """
    monitor = build_monitor(verbose)
    (key,) = resolve_workspaces([path])
    monitor.add_workspace(key)
    monitor.refresh_processes()

    acknowledged = monitor.acknowledge(key, propagate=not no_touch)
    if acknowledged is None:
        rprint(f"[dim]Nothing to acknowledge in {key}[/dim]")
        return
    rprint(f"[green]✓[/green] Acknowledged {key}: {status_summary(monitor.cached_status(key))}")


@app.command()
def touch(
    path: Annotated[str, typer.Argument(help="Workspace directory")] = ".",
    verbose: VerboseOption = False,
):
    """Send a liveness ping: bump the newest session file's mtime."""
    monitor = build_monitor(verbose)
    (key,) = resolve_workspaces([path])

    touched = monitor.touch_workspace(key)
    if touched is None:
        rprint(f"[yellow]No session files for {key}[/yellow]")
        raise typer.Exit(1)
    rprint(f"[green]✓[/green] Touched {touched}")

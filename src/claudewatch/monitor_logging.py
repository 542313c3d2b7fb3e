"""
Event logger for the status monitor.

Pretty rich console output plus a plain-text log file, in the same shape as
the daemon loggers: info/warn/error/success go to both, debug only to the
file. Writing the file is best effort; a full disk or a bad path never
interrupts monitoring.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.theme import Theme

from .status_constants import get_status_label, get_status_symbol


MONITOR_THEME = Theme({
    "info": "cyan",
    "warn": "yellow",
    "error": "bold red",
    "success": "bold green",
    "dim": "dim white",
    "highlight": "bold white",
})


class MonitorLogger:
    """Rich-based event logger with optional file mirror."""

    def __init__(
        self,
        log_file: Optional[Path] = None,
        console: Optional[Console] = None,
        quiet: bool = False,
    ):
        self.log_file = Path(log_file) if log_file is not None else None
        if self.log_file is not None:
            try:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
            except OSError:
                self.log_file = None
        self.console = console or Console(theme=MONITOR_THEME, stderr=True)
        self.quiet = quiet

    def _write_to_file(self, message: str, level: str) -> None:
        """Append a plain line to the log file."""
        if self.log_file is None:
            return
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        try:
            with open(self.log_file, "a") as f:
                f.write(f"[{timestamp}] [{level}] {message}\n")
        except OSError:
            pass

    def _log(self, style: str, tag: str, message: str, level: str) -> None:
        self._write_to_file(message, level)
        if self.quiet:
            return
        now = datetime.now().strftime("%H:%M:%S")
        self.console.print(f"[dim]{now}[/dim] [{style}]{tag:<5}[/{style}] {message}")

    def info(self, message: str) -> None:
        self._log("info", "INFO", message, "INFO")

    def warn(self, message: str) -> None:
        self._log("warn", "WARN", message, "WARN")

    def error(self, message: str) -> None:
        self._log("error", "ERROR", message, "ERROR")

    def success(self, message: str) -> None:
        self._log("success", "OK", message, "INFO")

    def debug(self, message: str) -> None:
        """File only."""
        self._write_to_file(message, "DEBUG")

    def status_change(
        self,
        workspace: str,
        old_status: Optional[str],
        new_status: str,
        last_message_time: Optional[float] = None,
    ) -> None:
        """Log a workspace status transition."""
        name = Path(workspace).name or workspace
        when = ""
        if last_message_time is not None:
            when = f" @ {datetime.fromtimestamp(last_message_time).strftime('%H:%M:%S')}"
        old_label = get_status_label(old_status) if old_status else "-"
        new_label = get_status_label(new_status)

        self._write_to_file(f"{name}: {old_label} -> {new_label}{when}", "INFO")
        if self.quiet:
            return
        symbol, color = get_status_symbol(new_status)
        now = datetime.now().strftime("%H:%M:%S")
        self.console.print(
            f"[dim]{now}[/dim] [{color}]{symbol or '·'}[/{color}] [bold]{name}[/bold]: "
            f"[dim]{old_label}[/dim] → [{color}]{new_label}[/{color}][dim]{when}[/dim]"
        )

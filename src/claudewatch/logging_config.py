"""
Logging configuration for claudewatch.

All modules log through get_logger(), which namespaces loggers under
"claudewatch" so a single setup_logging() call controls everything.
Nothing is emitted until a handler is installed; the library stays quiet
when embedded.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "claudewatch"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under claudewatch (e.g. "claudewatch.cache")."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the claudewatch logger.

    Replaces any handlers installed by an earlier call.

    Args:
        level: Logging level for the claudewatch namespace
        log_file: Optional file to append plain-text records to
        console: Whether to log to stderr through rich

    Returns:
        The configured root claudewatch logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.setLevel(level)
    root.propagate = False

    if console:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setLevel(level)
        root.addHandler(handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        file_handler.setLevel(level)
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    return root


def setup_cli_logging(verbose: bool = False) -> logging.Logger:
    """Console-only logging for CLI commands: warnings, or debug with --verbose."""
    return setup_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        console=True,
    )

"""
Centralized settings and path helpers for claudewatch.

Defaults live in the MonitorSettings dataclass; the optional YAML config
(~/.claudewatch/config.yaml, see config.py) overrides them, and explicit
constructor arguments override both.

Environment variables:
    CLAUDEWATCH_CLAUDE_DIR  Root of Claude Code's data dir (default ~/.claude)
    CLAUDEWATCH_STATE_DIR   Where claudewatch keeps its config and logs
                            (default ~/.claudewatch)
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_config import get_logger

logger = get_logger("settings")


# =============================================================================
# Paths
# =============================================================================


def get_claude_dir() -> Path:
    """Root of Claude Code's data directory."""
    env_dir = os.environ.get("CLAUDEWATCH_CLAUDE_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".claude"


def get_projects_dir() -> Path:
    """Directory holding one session-log directory per workspace."""
    return get_claude_dir() / "projects"


def get_state_dir() -> Path:
    """Directory for claudewatch's own config and logs."""
    env_dir = os.environ.get("CLAUDEWATCH_STATE_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".claudewatch"


def get_log_path() -> Path:
    """Event log written by MonitorLogger."""
    return get_state_dir() / "monitor.log"


def ensure_state_dir() -> Path:
    """Create the state directory if needed and return it."""
    state_dir = get_state_dir()
    state_dir.mkdir(parents=True, exist_ok=True)
    return state_dir


# =============================================================================
# Monitor settings
# =============================================================================


@dataclass(frozen=True)
class MonitorSettings:
    """Tunables for detection and scheduling. All durations are seconds."""

    # Scheduling
    recompute_interval: float = 5.0
    process_rescan_interval: float = 30.0

    # Status heuristics
    executing_threshold: float = 30.0
    waiting_min_age: float = 10.0
    waiting_window: float = 5 * 60.0
    recently_finished_window: float = 30 * 60.0

    # Session files not touched for this long are not listed (None = list all)
    session_max_age: Optional[float] = 24 * 60 * 60.0

    # Log reader windows
    head_bytes: int = 1024
    tail_bytes: int = 2048
    head_scan_records: int = 5
    tail_scan_records: int = 20
    session_extension: str = ".jsonl"

    # Process registry
    agent_process_name: str = "claude"
    introspection_timeout: float = 2.0

    @classmethod
    def from_config(cls, data: Optional[Dict[str, Any]]) -> "MonitorSettings":
        """Build settings from a config mapping, keeping defaults for bad values."""
        defaults = cls()
        if not data:
            return defaults

        overrides: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(defaults, f.name)

            if f.name == "session_max_age" and value is None:
                overrides[f.name] = None
                continue

            if isinstance(default, str):
                if isinstance(value, str) and value:
                    overrides[f.name] = value
                else:
                    logger.warning("Ignoring invalid %s=%r in config", f.name, value)
                continue

            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                logger.warning("Ignoring invalid %s=%r in config", f.name, value)
                continue

            if isinstance(default, int) and not isinstance(default, bool):
                overrides[f.name] = int(value)
            else:
                overrides[f.name] = float(value)

        return replace(defaults, **overrides)

    def with_overrides(self, **kwargs) -> "MonitorSettings":
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_monitor_settings(**overrides) -> MonitorSettings:
    """Settings from the config file's `monitor:` section plus explicit overrides."""
    from .config import get_monitor_config

    return MonitorSettings.from_config(get_monitor_config()).with_overrides(**overrides)

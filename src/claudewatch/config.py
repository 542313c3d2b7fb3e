"""
User configuration file for claudewatch.

Location: ~/.claudewatch/config.yaml (or $CLAUDEWATCH_STATE_DIR/config.yaml)

Example:

    workspaces:
      - ~/src/api
      - ~/src/web

    monitor:
      recompute_interval: 5
      process_rescan_interval: 30
      executing_threshold: 30
      waiting_min_age: 10
"""

from pathlib import Path
from typing import Any, Dict, List

import yaml

from .logging_config import get_logger
from .settings import get_state_dir

logger = get_logger("config")

CONFIG_PATH = get_state_dir() / "config.yaml"


def load_config() -> Dict[str, Any]:
    """Load the config file.

    Returns an empty dict when the file is missing, unreadable, not valid
    YAML, or not a mapping at the top level.
    """
    if not CONFIG_PATH.exists():
        return {}

    try:
        with open(CONFIG_PATH) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not load %s: %s", CONFIG_PATH, e)
        return {}

    if not isinstance(data, dict):
        return {}
    return data


def save_config(config: Dict[str, Any]) -> None:
    """Write the config mapping to CONFIG_PATH, creating parent directories."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_PATH, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


def get_monitor_config() -> Dict[str, Any]:
    """The `monitor:` section, or an empty dict."""
    section = load_config().get("monitor")
    if not isinstance(section, dict):
        return {}
    return section


def get_workspaces_config() -> List[str]:
    """Absolute workspace paths listed under `workspaces:`.

    Entries are user-expanded and resolved; non-string entries are dropped.
    """
    entries = load_config().get("workspaces")
    if not isinstance(entries, list):
        return []

    workspaces: List[str] = []
    for entry in entries:
        if not isinstance(entry, str) or not entry.strip():
            continue
        workspaces.append(str(Path(entry.strip()).expanduser().resolve()))
    return workspaces

"""
Registry of live agent processes and their working directories.

Resolving a process's cwd is the expensive call, so each pid is resolved
once and kept until a later scan no longer lists it. The table is rebuilt
off to the side and swapped in whole, so readers on other threads always
see a complete snapshot without locking.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .exceptions import ProcessIntrospectionError
from .logging_config import get_logger
from .protocols import ProcessInspectorInterface
from .session_reader import is_path_within, normalize_workspace_key

logger = get_logger("process_registry")


@dataclass(frozen=True)
class ProcessRecord:
    """A live agent process."""

    pid: str
    working_directory: str


class ProcessRegistry:
    """Short-lived {pid -> cwd} table for agent processes.

    refresh() only does work while the host is focused; while unfocused the
    table is frozen and is_process_running() answers from the last scan.
    """

    def __init__(
        self,
        inspector: Optional[ProcessInspectorInterface] = None,
        agent_name: str = "claude",
        clock: Callable[[], float] = time.time,
        introspection_timeout: Optional[float] = None,
    ):
        if inspector is None:
            from .implementations import PsutilProcessInspector
            inspector = PsutilProcessInspector()
        self._inspector = inspector
        self.agent_name = agent_name
        self._clock = clock
        # Time allowed per scan for resolving new pids; the rest wait for the next scan
        self.introspection_timeout = introspection_timeout
        self._processes: Dict[str, ProcessRecord] = {}
        self._focused = True
        self.last_refresh: Optional[float] = None

    @property
    def focused(self) -> bool:
        return self._focused

    def set_focused(self, focused: bool) -> None:
        self._focused = bool(focused)

    def refresh(self) -> bool:
        """Rescan processes and update the table.

        Returns:
            True if the set of known processes changed
        """
        if not self._focused:
            logger.debug("Skipping process refresh while unfocused")
            return False

        try:
            pids = self._inspector.list_agent_pids(self.agent_name)
        except Exception as e:
            # Listing itself failed: keep the last known table
            logger.warning("Process listing failed: %s", e)
            return False

        current = self._processes
        updated: Dict[str, ProcessRecord] = {}
        deadline = None
        if self.introspection_timeout is not None:
            deadline = time.monotonic() + self.introspection_timeout
        deferred = 0
        for pid in pids:
            cached = current.get(pid)
            if cached is not None:
                updated[pid] = cached
                continue
            if deadline is not None and time.monotonic() > deadline:
                deferred += 1
                continue
            try:
                cwd = self._inspector.get_cwd(pid)
            except ProcessIntrospectionError as e:
                logger.debug("%s", e)
                continue
            updated[pid] = ProcessRecord(pid=pid, working_directory=normalize_workspace_key(cwd))
            logger.debug("Cached new process %s: %s", pid, cwd)

        if deferred:
            logger.debug("Deferred cwd lookup for %d process(es) to the next scan", deferred)

        stopped = set(current) - set(updated)
        for pid in stopped:
            logger.debug("Removed stopped process %s", pid)

        changed = set(updated) != set(current)
        self._processes = updated
        self.last_refresh = self._clock()
        return changed

    def is_process_running(self, workspace: str) -> bool:
        """True if any known process runs in the workspace or below it."""
        key = normalize_workspace_key(workspace)
        for record in self._processes.values():
            if is_path_within(record.working_directory, key):
                return True
        return False

    def snapshot(self) -> List[ProcessRecord]:
        """Current table as a list (stable copy)."""
        return list(self._processes.values())

    def __len__(self) -> int:
        return len(self._processes)

    def clear(self) -> None:
        self._processes = {}

"""
Protocol definitions for external dependencies and shared contracts.

These interfaces allow dependency injection for testing (swap psutil for a
fake process table) and give the monitor and its consumers one explicit
contract instead of passing untyped objects around.
"""

from typing import Callable, List, Optional, Protocol, runtime_checkable

from .status_constants import StatusInfo


ChangeCallback = Callable[[str, StatusInfo], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class ProcessInspectorInterface(Protocol):
    """Interface for OS process introspection"""

    def list_agent_pids(self, agent_name: str) -> List[str]:
        """List ids of live processes that look like the agent.

        Args:
            agent_name: executable name to match (e.g. "claude")

        Returns:
            Process ids as strings; empty when none match
        """
        ...

    def get_cwd(self, pid: str) -> str:
        """Resolve a process's current working directory.

        Raises:
            ProcessIntrospectionError: if the process is gone or inaccessible
        """
        ...


@runtime_checkable
class StatusProvider(Protocol):
    """What presentation layers may call on a status monitor."""

    def get_status(self, workspace: str) -> Optional[StatusInfo]:
        """Current status, or None when inference failed (keep showing the old one)."""
        ...

    def subscribe_to_changes(self, callback: ChangeCallback) -> Unsubscribe:
        """Call back on every genuine status change; returns an unsubscribe function."""
        ...

    def acknowledge(self, workspace: str, propagate: bool = False) -> None:
        """Mark the workspace's current state as seen by the user."""
        ...

    def set_focused(self, focused: bool) -> None:
        """Host focus transition; gates process rescans and recomputes."""
        ...

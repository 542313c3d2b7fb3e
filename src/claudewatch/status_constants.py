"""
Status constants and mappings for claudewatch.

Centralizes all status-related constants, symbols, colors and the
StatusInfo value object shared by the engine, the monitor and the CLI.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


# =============================================================================
# Workspace Status Values
# =============================================================================

STATUS_NO_SESSION = "no_session"  # No conversations exist for the workspace
STATUS_NOT_RUNNING = "not_running"  # Conversations exist, no claude process
STATUS_RUNNING = "running"  # Process alive but idle
STATUS_EXECUTING = "executing"  # Session log written very recently
STATUS_WAITING_FOR_INPUT = "waiting_for_input"  # Pending tool call, likely blocked on the user
STATUS_RECENTLY_FINISHED = "recently_finished"  # Finished a turn, nobody has looked yet

# All valid status values, lowest to highest precedence
ALL_STATUSES = [
    STATUS_NO_SESSION,
    STATUS_NOT_RUNNING,
    STATUS_RUNNING,
    STATUS_RECENTLY_FINISHED,
    STATUS_EXECUTING,
    STATUS_WAITING_FOR_INPUT,
]

# Message roles as normalized by the session reader
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_OTHER = "other"


@dataclass(frozen=True)
class StatusInfo:
    """Status of one workspace, plus the timestamp that justifies it.

    status == STATUS_NO_SESSION exactly when conversation_count == 0.
    """

    status: str
    last_message_time: Optional[float] = None
    conversation_count: int = 0

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "last_message_time": self.last_message_time,
            "conversation_count": self.conversation_count,
        }


NO_SESSION_INFO = StatusInfo(status=STATUS_NO_SESSION, conversation_count=0)


# =============================================================================
# Status to Symbol+Color (for Rich styling)
# =============================================================================

STATUS_SYMBOLS = {
    STATUS_NO_SESSION: ("", "dim"),
    STATUS_NOT_RUNNING: ("○", "dim"),
    STATUS_RUNNING: ("●", "green"),
    STATUS_EXECUTING: ("▶", "cyan"),
    STATUS_WAITING_FOR_INPUT: ("⚠", "yellow"),
    STATUS_RECENTLY_FINISHED: ("✓", "bold green"),
}

STATUS_LABELS = {
    STATUS_NO_SESSION: "No session",
    STATUS_NOT_RUNNING: "Not running",
    STATUS_RUNNING: "Running (idle)",
    STATUS_EXECUTING: "Executing",
    STATUS_WAITING_FOR_INPUT: "Waiting for input",
    STATUS_RECENTLY_FINISHED: "Recently finished",
}


def get_status_symbol(status: str) -> Tuple[str, str]:
    """Get (symbol, color) tuple for a workspace status."""
    return STATUS_SYMBOLS.get(status, ("?", "dim"))


def get_status_color(status: str) -> str:
    """Get color name for a workspace status."""
    return get_status_symbol(status)[1]


def get_status_label(status: str) -> str:
    """Get a human-readable label for a workspace status."""
    return STATUS_LABELS.get(status, status)


# =============================================================================
# Status Categorization
# =============================================================================


def is_active_status(status: str) -> bool:
    """Check if the agent is doing work right now."""
    return status == STATUS_EXECUTING


def needs_attention(status: str) -> bool:
    """Check if the status asks the user to look at the workspace."""
    return status in (STATUS_WAITING_FOR_INPUT, STATUS_RECENTLY_FINISHED)


def has_session(status: str) -> bool:
    """Check if any conversation exists for the workspace."""
    return status != STATUS_NO_SESSION


def recency_fraction(last_message_time: Optional[float], now: float, window_seconds: float) -> float:
    """Fraction (1.0 = just now, 0.0 = window elapsed) used for fading "finished" badges."""
    if last_message_time is None or window_seconds <= 0:
        return 0.0
    age = now - last_message_time
    if age <= 0:
        return 1.0
    if age >= window_seconds:
        return 0.0
    return 1.0 - (age / window_seconds)

"""
Pure status inference logic.

These functions contain no I/O and are fully unit-testable. The monitor
feeds them cached summaries, the process-registry answer, the monitoring
start time and the acknowledgement; they return a StatusInfo.

Precedence (first match wins):
    1. no_session         no conversations at all
    2. waiting_for_input  recent assistant tool call that has sat unanswered
    3. executing          any conversation written very recently
    4. recently_finished  newest conversation finished within the window
    5. running / not_running, depending on the process registry

An acknowledgement at or after the justifying timestamp turns executing or
recently_finished into running.
"""

from typing import List, Optional, Sequence

from .message_classifier import MessageClassifier, classify_message
from .session_reader import ConversationSummary
from .settings import MonitorSettings
from .status_constants import (
    NO_SESSION_INFO,
    ROLE_ASSISTANT,
    STATUS_EXECUTING,
    STATUS_NOT_RUNNING,
    STATUS_RECENTLY_FINISHED,
    STATUS_RUNNING,
    STATUS_WAITING_FOR_INPUT,
    StatusInfo,
)

DEFAULT_SETTINGS = MonitorSettings()

# Statuses an acknowledgement is allowed to suppress
SUPPRESSIBLE_STATUSES = (STATUS_EXECUTING, STATUS_RECENTLY_FINISHED)


def sort_conversations(conversations: Sequence[ConversationSummary]) -> List[ConversationSummary]:
    """Most recently modified first."""
    return sorted(conversations, key=lambda c: c.last_modified, reverse=True)


def check_waiting_for_input(
    conversations: Sequence[ConversationSummary],
    now: float,
    settings: MonitorSettings = DEFAULT_SETTINGS,
    classifier: MessageClassifier = classify_message,
) -> Optional[float]:
    """Timestamp of a conversation that looks blocked on the user, else None.

    Requires an assistant message with a tool-use marker, modified within
    the waiting window and at least waiting_min_age old. The minimum age
    keeps a tool call that is being issued mid-run from flashing "waiting".
    """
    window_start = now - settings.waiting_window
    for convo in conversations:
        if convo.last_modified <= window_start:
            continue
        msg = convo.last_message
        if msg is None or msg.role != ROLE_ASSISTANT or not msg.content:
            continue
        if not classifier(msg.content).is_tool_use:
            continue
        if now - convo.last_modified >= settings.waiting_min_age:
            return convo.last_modified
    return None


def check_executing(
    conversations: Sequence[ConversationSummary],
    now: float,
    settings: MonitorSettings = DEFAULT_SETTINGS,
) -> Optional[float]:
    """Timestamp of a conversation modified within the executing threshold, else None."""
    threshold = now - settings.executing_threshold
    for convo in conversations:
        if convo.last_modified > threshold:
            return convo.last_modified
    return None


def check_recently_finished(
    conversations: Sequence[ConversationSummary],
    now: float,
    settings: MonitorSettings = DEFAULT_SETTINGS,
    monitoring_started_at: Optional[float] = None,
    classifier: MessageClassifier = classify_message,
) -> Optional[float]:
    """Timestamp of the newest conversation if it finished recently, else None.

    Only the first (newest) conversation is considered. History written
    before monitoring started never counts as "just finished".
    """
    if not conversations:
        return None
    newest = conversations[0]
    msg = newest.last_message
    if msg is None:
        return None
    if now - newest.last_modified > settings.recently_finished_window:
        return None
    if monitoring_started_at is not None and newest.last_modified < monitoring_started_at:
        return None
    if classifier(msg.content).is_tool_use:
        return None
    return newest.last_modified


def infer_raw_status(
    conversations: Sequence[ConversationSummary],
    process_running: bool,
    now: float,
    settings: MonitorSettings = DEFAULT_SETTINGS,
    monitoring_started_at: Optional[float] = None,
    classifier: MessageClassifier = classify_message,
) -> StatusInfo:
    """Status before acknowledgement suppression."""
    if not conversations:
        return NO_SESSION_INFO

    ordered = sort_conversations(conversations)
    count = len(ordered)

    ts = check_waiting_for_input(ordered, now, settings, classifier)
    if ts is not None:
        return StatusInfo(STATUS_WAITING_FOR_INPUT, ts, count)

    ts = check_executing(ordered, now, settings)
    if ts is not None:
        return StatusInfo(STATUS_EXECUTING, ts, count)

    ts = check_recently_finished(ordered, now, settings, monitoring_started_at, classifier)
    if ts is not None:
        return StatusInfo(STATUS_RECENTLY_FINISHED, ts, count)

    return StatusInfo(STATUS_RUNNING if process_running else STATUS_NOT_RUNNING, None, count)


def apply_acknowledgement(info: StatusInfo, acknowledged_timestamp: Optional[float]) -> StatusInfo:
    """Report running instead of a status the user has already seen."""
    if acknowledged_timestamp is None:
        return info
    if info.status not in SUPPRESSIBLE_STATUSES or info.last_message_time is None:
        return info
    if acknowledged_timestamp >= info.last_message_time:
        return StatusInfo(STATUS_RUNNING, None, info.conversation_count)
    return info


def infer_status(
    conversations: Sequence[ConversationSummary],
    process_running: bool,
    now: float,
    settings: MonitorSettings = DEFAULT_SETTINGS,
    monitoring_started_at: Optional[float] = None,
    acknowledged_timestamp: Optional[float] = None,
    classifier: MessageClassifier = classify_message,
) -> StatusInfo:
    """Full inference: raw heuristics followed by acknowledgement suppression.

    Callers that track acknowledgements should clear one whose timestamp is
    older than the raw result's before calling this (see
    AcknowledgementTracker.on_newer_message).
    """
    raw = infer_raw_status(
        conversations, process_running, now, settings, monitoring_started_at, classifier
    )
    return apply_acknowledgement(raw, acknowledged_timestamp)


def status_changed(previous: Optional[StatusInfo], current: StatusInfo) -> bool:
    """Only the status and its justifying timestamp count as a change."""
    if previous is None:
        return True
    return (
        previous.status != current.status
        or previous.last_message_time != current.last_message_time
    )

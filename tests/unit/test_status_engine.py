"""
Unit tests for status_engine module.

Pure functions: every input is passed explicitly, no files or processes.
"""

import pytest

from claudewatch.message_classifier import MessageClassification
from claudewatch.session_reader import ConversationSummary, MessageSnapshot
from claudewatch.settings import MonitorSettings
from claudewatch.status_constants import (
    STATUS_EXECUTING,
    STATUS_NO_SESSION,
    STATUS_NOT_RUNNING,
    STATUS_RECENTLY_FINISHED,
    STATUS_RUNNING,
    STATUS_WAITING_FOR_INPUT,
    StatusInfo,
)
from claudewatch.status_engine import (
    apply_acknowledgement,
    check_executing,
    check_recently_finished,
    check_waiting_for_input,
    infer_raw_status,
    infer_status,
    sort_conversations,
    status_changed,
)

from fixtures import text_content, tool_use_content


NOW = 1_700_000_000.0
SETTINGS = MonitorSettings()


def convo(age, role="assistant", content=None, path=None, has_message=True):
    """A summary whose last message is `age` seconds old."""
    ts = NOW - age
    message = None
    if has_message:
        message = MessageSnapshot(
            role=role,
            content=content if content is not None else text_content(),
            timestamp=ts,
        )
    return ConversationSummary(
        path=path or f"/p/{age}.jsonl",
        working_directory="/w1",
        last_modified=ts,
        approximate_message_count=3,
        last_message=message,
    )


class TestSortConversations:

    def test_newest_first(self):
        result = sort_conversations([convo(100), convo(5), convo(50)])
        assert [NOW - c.last_modified for c in result] == [5, 50, 100]


class TestCheckWaitingForInput:
    """Pending tool call heuristic"""

    def test_tool_use_old_enough(self):
        assert check_waiting_for_input([convo(60, content=tool_use_content())], NOW) == NOW - 60

    def test_too_fresh(self):
        """A tool call issued a moment ago is still executing, not waiting."""
        assert check_waiting_for_input([convo(5, content=tool_use_content())], NOW) is None

    def test_exactly_min_age(self):
        assert check_waiting_for_input([convo(10, content=tool_use_content())], NOW) == NOW - 10

    def test_outside_window(self):
        assert check_waiting_for_input([convo(301, content=tool_use_content())], NOW) is None

    def test_user_role(self):
        assert check_waiting_for_input([convo(60, role="user", content=tool_use_content())], NOW) is None

    def test_no_marker(self):
        assert check_waiting_for_input([convo(60)], NOW) is None

    def test_any_conversation(self):
        """Not only the newest: an older session blocked on a tool call counts."""
        convos = sort_conversations([convo(15), convo(120, content=tool_use_content())])
        assert check_waiting_for_input(convos, NOW) == NOW - 120

    def test_custom_threshold(self):
        settings = MonitorSettings(waiting_min_age=90.0)
        assert check_waiting_for_input([convo(60, content=tool_use_content())], NOW, settings) is None

    def test_custom_classifier(self):
        def always(content):
            return MessageClassification(is_tool_use=True)

        assert check_waiting_for_input([convo(60)], NOW, SETTINGS, always) == NOW - 60


class TestCheckExecuting:

    def test_recent(self):
        assert check_executing([convo(10)], NOW) == NOW - 10

    def test_boundary_is_exclusive(self):
        assert check_executing([convo(30)], NOW) is None

    def test_old(self):
        assert check_executing([convo(31)], NOW) is None

    def test_newest_matching(self):
        convos = sort_conversations([convo(20), convo(3)])
        assert check_executing(convos, NOW) == NOW - 3


class TestCheckRecentlyFinished:

    def test_finished_after_monitoring_started(self):
        assert check_recently_finished([convo(20 * 60)], NOW, SETTINGS, NOW - 3600) == NOW - 1200

    def test_finished_before_monitoring_started(self):
        """Pre-existing history is not 'just finished'."""
        assert check_recently_finished([convo(20 * 60)], NOW, SETTINGS, NOW - 60) is None

    def test_window_elapsed(self):
        assert check_recently_finished([convo(31 * 60)], NOW, SETTINGS, NOW - 7200) is None

    def test_tool_marker(self):
        assert check_recently_finished([convo(120, content=tool_use_content())], NOW, SETTINGS, 0) is None

    def test_no_last_message(self):
        assert check_recently_finished([convo(120, has_message=False)], NOW, SETTINGS, 0) is None

    def test_user_role_counts(self):
        assert check_recently_finished([convo(120, role="user")], NOW, SETTINGS, 0) == NOW - 120

    def test_only_newest_considered(self):
        convos = sort_conversations([convo(60, content=tool_use_content()), convo(120)])
        assert check_recently_finished(convos, NOW, SETTINGS, 0) is None

    def test_empty(self):
        assert check_recently_finished([], NOW) is None


class TestInferStatus:
    """Precedence and final results"""

    def test_no_conversations(self):
        info = infer_status([], process_running=True, now=NOW)
        assert info == StatusInfo(STATUS_NO_SESSION, None, 0)

    def test_waiting_beats_executing(self):
        """One summary satisfies both: modified 15s ago with a pending tool call."""
        info = infer_status([convo(15, content=tool_use_content())], False, NOW)
        assert info.status == STATUS_WAITING_FOR_INPUT
        assert info.last_message_time == NOW - 15

    def test_executing(self):
        info = infer_status([convo(10)], False, NOW)
        assert info == StatusInfo(STATUS_EXECUTING, NOW - 10, 1)

    def test_recently_finished(self):
        info = infer_status([convo(20 * 60)], False, NOW, SETTINGS, monitoring_started_at=NOW - 3600)
        assert info == StatusInfo(STATUS_RECENTLY_FINISHED, NOW - 1200, 1)

    def test_running(self):
        info = infer_status([convo(2 * 3600)], True, NOW, SETTINGS, NOW)
        assert info == StatusInfo(STATUS_RUNNING, None, 1)

    def test_not_running(self):
        info = infer_status([convo(2 * 3600)], False, NOW, SETTINGS, NOW)
        assert info == StatusInfo(STATUS_NOT_RUNNING, None, 1)

    def test_conversation_count(self):
        info = infer_status([convo(7200), convo(9000), convo(9500)], False, NOW, SETTINGS, NOW)
        assert info.conversation_count == 3

    def test_order_of_input_does_not_matter(self):
        a = [convo(20 * 60), convo(25 * 60, content=tool_use_content())]
        first = infer_status(a, False, NOW, SETTINGS, 0)
        second = infer_status(list(reversed(a)), False, NOW, SETTINGS, 0)
        assert first == second
        assert first.status == STATUS_RECENTLY_FINISHED

    def test_deterministic(self):
        convos = [convo(45, content=tool_use_content())]
        assert infer_status(convos, True, NOW) == infer_status(convos, True, NOW)


class TestToolUseScenario:
    """Session with cwd=/w1 and one assistant message 'tool_use:write_file', no process"""

    def _status(self, age):
        return infer_status([convo(age, content="tool_use:write_file")], False, NOW, SETTINGS, NOW - 3600)

    def test_sixty_seconds_is_waiting(self):
        assert self._status(60).status == STATUS_WAITING_FOR_INPUT

    def test_under_min_age_is_executing(self):
        assert self._status(5).status == STATUS_EXECUTING

    def test_past_window_is_not_running(self):
        assert self._status(6 * 60).status == STATUS_NOT_RUNNING


class TestAcknowledgement:
    """Suppression of statuses the user has already seen"""

    def test_suppresses_recently_finished(self):
        info = StatusInfo(STATUS_RECENTLY_FINISHED, NOW - 100, 2)
        assert apply_acknowledgement(info, NOW - 100) == StatusInfo(STATUS_RUNNING, None, 2)

    def test_suppresses_executing(self):
        info = StatusInfo(STATUS_EXECUTING, NOW - 5, 1)
        assert apply_acknowledgement(info, NOW).status == STATUS_RUNNING

    def test_newer_status_not_suppressed(self):
        info = StatusInfo(STATUS_RECENTLY_FINISHED, NOW - 10, 1)
        assert apply_acknowledgement(info, NOW - 100) is info

    def test_waiting_never_suppressed(self):
        info = StatusInfo(STATUS_WAITING_FOR_INPUT, NOW - 60, 1)
        assert apply_acknowledgement(info, NOW) is info

    def test_no_acknowledgement(self):
        info = StatusInfo(STATUS_EXECUTING, NOW - 5, 1)
        assert apply_acknowledgement(info, None) is info

    def test_infer_status_applies_acknowledgement(self):
        convos = [convo(20 * 60)]
        info = infer_status(convos, False, NOW, SETTINGS, 0, acknowledged_timestamp=NOW - 1200)
        assert info.status == STATUS_RUNNING

    def test_raw_status_ignores_acknowledgement(self):
        info = infer_raw_status([convo(20 * 60)], False, NOW, SETTINGS, 0)
        assert info.status == STATUS_RECENTLY_FINISHED


class TestStatusChanged:

    def test_first_result_is_a_change(self):
        assert status_changed(None, StatusInfo(STATUS_RUNNING))

    def test_same(self):
        assert not status_changed(StatusInfo(STATUS_EXECUTING, 5.0, 1), StatusInfo(STATUS_EXECUTING, 5.0, 1))

    def test_count_alone_is_not_a_change(self):
        assert not status_changed(StatusInfo(STATUS_RUNNING, None, 1), StatusInfo(STATUS_RUNNING, None, 2))

    def test_status_differs(self):
        assert status_changed(StatusInfo(STATUS_RUNNING), StatusInfo(STATUS_NOT_RUNNING))

    def test_timestamp_differs(self):
        assert status_changed(StatusInfo(STATUS_EXECUTING, 5.0, 1), StatusInfo(STATUS_EXECUTING, 6.0, 1))


@pytest.mark.parametrize(
    "age, expected",
    [
        (10, STATUS_EXECUTING),
        (20 * 60, STATUS_RECENTLY_FINISHED),
        (40 * 60, STATUS_NOT_RUNNING),
    ],
)
def test_plain_text_by_age(age, expected):
    assert infer_status([convo(age)], False, NOW, SETTINGS, 0).status == expected

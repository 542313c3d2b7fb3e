"""Tests for implementations module."""

import os
from unittest.mock import MagicMock, patch

import psutil
import pytest

from claudewatch.exceptions import ProcessIntrospectionError
from claudewatch.implementations import PsutilProcessInspector, matches_agent


def _proc(pid, name, cmdline):
    proc = MagicMock()
    proc.info = {"pid": pid, "name": name, "cmdline": cmdline}
    return proc


class TestMatchesAgent:
    """Process name / command line matching"""

    def test_process_name(self):
        assert matches_agent("claude", [], "claude")

    def test_case_insensitive(self):
        assert matches_agent("Claude", [], "claude")

    def test_node_wrapper(self):
        """`node /usr/local/bin/claude` is the agent."""
        assert matches_agent("node", ["node", "/usr/local/bin/claude", "--resume"], "claude")

    def test_argument_mentioning_agent_is_not_a_match(self):
        assert not matches_agent("vim", ["vim", "notes.md", "claude"], "claude")

    def test_substring_is_not_a_match(self):
        assert not matches_agent("claude-helper", ["claude-helper"], "claude")

    def test_empty(self):
        assert not matches_agent("", [], "claude")


class TestPsutilProcessInspector:
    """Tests for PsutilProcessInspector with psutil mocked out."""

    def test_lists_matching_pids(self):
        procs = [
            _proc(10, "claude", ["claude"]),
            _proc(11, "bash", ["bash"]),
            _proc(12, "node", ["node", "/opt/claude"]),
        ]
        with patch("claudewatch.implementations.psutil.process_iter", return_value=procs):
            pids = PsutilProcessInspector().list_agent_pids("claude")

        assert pids == ["10", "12"]

    def test_excludes_own_pid(self):
        procs = [_proc(os.getpid(), "claude", ["claude"])]
        with patch("claudewatch.implementations.psutil.process_iter", return_value=procs):
            assert PsutilProcessInspector().list_agent_pids("claude") == []

    def test_get_cwd(self):
        fake = MagicMock()
        fake.cwd.return_value = "/w/proj"
        with patch("claudewatch.implementations.psutil.Process", return_value=fake) as process:
            assert PsutilProcessInspector().get_cwd("42") == "/w/proj"
        process.assert_called_once_with(42)

    @pytest.mark.parametrize(
        "error",
        [psutil.NoSuchProcess(42), psutil.AccessDenied(42), psutil.ZombieProcess(42)],
    )
    def test_get_cwd_errors(self, error):
        fake = MagicMock()
        fake.cwd.side_effect = error
        with patch("claudewatch.implementations.psutil.Process", return_value=fake):
            with pytest.raises(ProcessIntrospectionError):
                PsutilProcessInspector().get_cwd("42")

    def test_get_cwd_invalid_pid(self):
        with pytest.raises(ProcessIntrospectionError):
            PsutilProcessInspector().get_cwd("not-a-pid")

    def test_get_cwd_empty(self):
        fake = MagicMock()
        fake.cwd.return_value = ""
        with patch("claudewatch.implementations.psutil.Process", return_value=fake):
            with pytest.raises(ProcessIntrospectionError):
                PsutilProcessInspector().get_cwd("42")

    def test_own_process_cwd(self):
        """Smoke test against the real process table."""
        assert PsutilProcessInspector().get_cwd(str(os.getpid())) == os.getcwd()

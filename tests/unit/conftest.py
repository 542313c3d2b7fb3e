"""
Unit test configuration for claudewatch.

Every test gets its own state dir and Claude data dir so nothing reads or
writes the user's ~/.claude or ~/.claudewatch.
"""

import pytest


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point CLAUDEWATCH_* dirs and CONFIG_PATH at a temp directory."""
    state_dir = tmp_path / "state"
    claude_dir = tmp_path / "claude"
    monkeypatch.setenv("CLAUDEWATCH_STATE_DIR", str(state_dir))
    monkeypatch.setenv("CLAUDEWATCH_CLAUDE_DIR", str(claude_dir))

    import claudewatch.config

    monkeypatch.setattr(claudewatch.config, "CONFIG_PATH", state_dir / "config.yaml")
    return {"state_dir": state_dir, "claude_dir": claude_dir}


@pytest.fixture
def projects_dir(isolated_dirs):
    path = isolated_dirs["claude_dir"] / "projects"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def clock():
    import time

    from fixtures import FakeClock

    # Real wall time, so file mtimes written by tests line up with the clock
    return FakeClock(time.time())


@pytest.fixture
def inspector():
    from fixtures import FakeProcessInspector

    return FakeProcessInspector()

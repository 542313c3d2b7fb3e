"""
Test fixtures and factories for claudewatch unit tests.

Helpers for writing realistic session JSONL files, plus fakes for the
process inspector, the clock and the watchdog observer.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from claudewatch.exceptions import ProcessIntrospectionError
from claudewatch.session_reader import encode_project_path


def iso(ts: float) -> str:
    """Epoch seconds as the ISO string Claude Code writes (UTC, 'Z' suffix)."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def make_record(
    role: str = "assistant",
    content=None,
    timestamp: Optional[float] = None,
    cwd: Optional[str] = None,
    type: Optional[str] = None,
) -> dict:
    """Build one session record."""
    record = {"type": type or role}
    if cwd is not None:
        record["cwd"] = cwd
    if timestamp is not None:
        record["timestamp"] = iso(timestamp)
    if role is not None:
        record["message"] = {
            "role": role,
            "content": content if content is not None else [{"type": "text", "text": "ok"}],
        }
    return record


def tool_use_content(name: str = "Bash") -> list:
    return [{"type": "tool_use", "id": "toolu_01", "name": name, "input": {"command": "ls"}}]


def text_content(text: str = "Done.") -> list:
    return [{"type": "text", "text": text}]


def write_session(path: Path, records: Iterable[dict], mtime: Optional[float] = None) -> Path:
    """Write records as JSONL (one per line) and optionally set the mtime."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(json.dumps(r) + "\n" for r in records))
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def append_record(path: Path, record: dict, mtime: Optional[float] = None) -> None:
    with open(path, "a") as f:
        f.write(json.dumps(record) + "\n")
    if mtime is not None:
        os.utime(path, (mtime, mtime))


def project_dir_for(projects_dir: Path, workspace: str) -> Path:
    """Session-log directory Claude Code would use for workspace."""
    return Path(projects_dir) / encode_project_path(workspace)


def write_workspace_session(
    projects_dir: Path,
    workspace: str,
    name: str = "session-1",
    records: Optional[List[dict]] = None,
    mtime: Optional[float] = None,
) -> Path:
    """Write a session file for workspace; the first record carries its cwd."""
    records = list(records or [])
    header = {"type": "system", "cwd": workspace, "sessionId": name}
    path = project_dir_for(projects_dir, workspace) / f"{name}.jsonl"
    return write_session(path, [header] + records, mtime=mtime)


class FakeClock:
    """Injectable clock: call it for the current time, advance() to move it."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeProcessInspector:
    """In-memory process table implementing ProcessInspectorInterface."""

    def __init__(self, processes: Optional[Dict[str, str]] = None):
        self.processes: Dict[str, str] = dict(processes or {})
        self.inaccessible: Set[str] = set()
        self.list_error: Optional[Exception] = None
        self.list_calls = 0
        self.cwd_calls: List[str] = []

    def list_agent_pids(self, agent_name: str) -> List[str]:
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.processes)

    def get_cwd(self, pid: str) -> str:
        self.cwd_calls.append(pid)
        if pid in self.inaccessible or pid not in self.processes:
            raise ProcessIntrospectionError(pid, "access denied")
        return self.processes[pid]


class FakeWatch:
    def __init__(self, handler, path: str, recursive: bool):
        self.handler = handler
        self.path = path
        self.is_recursive = recursive


class FakeObserver:
    """Stand-in for watchdog's Observer that records schedules."""

    def __init__(self):
        self.watches: List[FakeWatch] = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        watch = FakeWatch(handler, str(path), recursive)
        self.watches.append(watch)
        return watch

    def unschedule(self, watch):
        self.watches.remove(watch)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass

    def handler_for(self, path) -> Optional[object]:
        for watch in self.watches:
            if watch.path == str(path):
                return watch.handler
        return None

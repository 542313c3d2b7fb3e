"""
Read Claude Code session logs into small summaries.

Claude Code stores one append-only JSONL file per session in:
- ~/.claude/projects/{encoded-path}/{sessionId}.jsonl

Each line is one record, roughly:

    {"type": "assistant", "cwd": "/home/me/proj",
     "timestamp": "2026-01-02T06:56:01.975Z",
     "message": {"role": "assistant", "content": [...]}}

Session files grow without bound, so nothing here reads a whole file: the
working directory comes from a small window at the head (read once per
file, then cached forever by the caller) and the latest message from a
small window at the tail.
"""

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .exceptions import RecordParseError, SessionReadError
from .logging_config import get_logger
from .status_constants import ROLE_ASSISTANT, ROLE_OTHER, ROLE_USER

logger = get_logger("session_reader")

# Record types that never count as "the last message"
IGNORED_RECORD_TYPES = frozenset({"file-history-snapshot", "summary"})

DEFAULT_HEAD_BYTES = 1024
DEFAULT_TAIL_BYTES = 2048
DEFAULT_HEAD_RECORDS = 5
DEFAULT_TAIL_RECORDS = 20


@dataclass(frozen=True)
class MessageSnapshot:
    """The most recent user/assistant message found in a session file."""

    role: str
    content: Any
    timestamp: float


@dataclass(frozen=True)
class ConversationSummary:
    """Bounded view of one session file."""

    path: str
    working_directory: str
    last_modified: float
    approximate_message_count: int
    last_message: Optional[MessageSnapshot] = None


@dataclass(frozen=True)
class SessionFileInfo:
    """A session file as seen in a directory listing."""

    path: str
    mtime: float
    size: int


# =============================================================================
# Workspace path helpers
# =============================================================================


def normalize_workspace_key(path: str) -> str:
    """Normalize a workspace path into the key used across all caches."""
    return os.path.normpath(os.path.abspath(os.path.expanduser(str(path))))


def encode_project_path(path: str) -> str:
    """Encode a workspace path to Claude Code's directory naming format.

    /home/user/myproject -> -home-user-myproject
    """
    return str(path).replace(os.sep, "-")


def get_project_dir(workspace: str, projects_dir: Path) -> Path:
    """Session-log directory for a workspace."""
    return Path(projects_dir) / encode_project_path(workspace)


def is_path_within(path: str, workspace: str) -> bool:
    """True when path equals workspace or lies underneath it."""
    path = os.path.normpath(path)
    workspace = os.path.normpath(workspace)
    if path == workspace:
        return True
    prefix = workspace if workspace.endswith(os.sep) else workspace + os.sep
    return path.startswith(prefix)


# =============================================================================
# Record parsing
# =============================================================================


def parse_timestamp(value: Any) -> Optional[float]:
    """Convert a record timestamp to epoch seconds.

    Strings are ISO 8601 (a trailing "Z" is accepted, naive values are
    local time); numbers are epoch milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value / 1000.0 if value > 0 else None
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
        except ValueError:
            return None
    return None


def parse_record(line: str) -> dict:
    """Parse one JSONL line into a record dict.

    Raises:
        RecordParseError: if the line is not a JSON object
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordParseError(line, e.msg) from e
    if not isinstance(data, dict):
        raise RecordParseError(line, "not an object")
    return data


def normalize_role(role: Any) -> str:
    if role == ROLE_USER:
        return ROLE_USER
    if role == ROLE_ASSISTANT:
        return ROLE_ASSISTANT
    return ROLE_OTHER


def message_from_record(record: dict) -> Optional[MessageSnapshot]:
    """Extract a message from a record, or None if it isn't a timestamped message."""
    if record.get("type") in IGNORED_RECORD_TYPES:
        return None
    message = record.get("message")
    if not isinstance(message, dict) or not message:
        return None
    timestamp = parse_timestamp(record.get("timestamp"))
    if timestamp is None:
        return None
    return MessageSnapshot(
        role=normalize_role(message.get("role") or record.get("type")),
        content=message.get("content"),
        timestamp=timestamp,
    )


# =============================================================================
# Windowed reads
# =============================================================================


def _read_window(path: Path, offset: int, size: int) -> str:
    try:
        with open(path, "rb") as f:
            f.seek(offset)
            return f.read(size).decode("utf-8", errors="replace")
    except OSError as e:
        raise SessionReadError(path, e.strerror or str(e)) from e


def read_working_directory(
    path: Path,
    head_bytes: int = DEFAULT_HEAD_BYTES,
    max_records: int = DEFAULT_HEAD_RECORDS,
) -> str:
    """Find the session's cwd in the first few records.

    Returns "" when no early record carries a cwd.

    Raises:
        SessionReadError: if the file cannot be read
    """
    chunk = _read_window(Path(path), 0, head_bytes)
    for line in chunk.split("\n")[:max_records]:
        if not line.strip():
            continue
        try:
            record = parse_record(line)
        except RecordParseError as e:
            logger.debug("%s: %s", Path(path).name, e)
            continue
        cwd = record.get("cwd")
        if isinstance(cwd, str) and cwd:
            return cwd
    return ""


def _tail_lines(path: Path, file_size: int, tail_bytes: int) -> Tuple[List[str], int]:
    """Non-empty lines from the tail window, newest first, and the raw line count."""
    read_size = min(file_size, tail_bytes)
    offset = max(0, file_size - read_size)
    chunk = _read_window(Path(path), offset, read_size)

    raw_lines = chunk.split("\n")
    approximate_count = len(raw_lines)
    lines = [line for line in raw_lines if line.strip()]
    # First line may be partial if we didn't read from start - drop it
    if offset > 0 and lines:
        lines = lines[1:]
    lines.reverse()
    return lines, approximate_count


def find_last_message(lines: List[str], max_records: int = DEFAULT_TAIL_RECORDS) -> Optional[MessageSnapshot]:
    """Pick the most recent message from lines ordered newest first.

    Records are expected in timestamp order, so the scan stops at the first
    message older than the best one found. A newer message further back
    wins and the scan continues.
    """
    best: Optional[MessageSnapshot] = None
    for line in lines[:max_records]:
        try:
            record = parse_record(line)
        except RecordParseError as e:
            logger.debug("skipping %s", e)
            continue

        message = message_from_record(record)
        if message is None:
            continue

        if best is None:
            best = message
        elif message.timestamp < best.timestamp:
            break
        elif message.timestamp > best.timestamp:
            best = message
    return best


def read_summary(
    path: Path,
    working_directory: Optional[str] = None,
    head_bytes: int = DEFAULT_HEAD_BYTES,
    tail_bytes: int = DEFAULT_TAIL_BYTES,
    tail_records: int = DEFAULT_TAIL_RECORDS,
) -> ConversationSummary:
    """Summarize one session file.

    Args:
        path: Session JSONL file
        working_directory: Previously cached cwd; the head is only read when None
        head_bytes: Size of the head window used to find the cwd
        tail_bytes: Size of the tail window scanned for the last message
        tail_records: Max records examined from the tail

    Returns:
        ConversationSummary whose last_modified is the newest message
        timestamp, or the file mtime when the tail holds no message.

    Raises:
        SessionReadError: if the file is missing or unreadable
    """
    path = Path(path)
    try:
        stat = path.stat()
    except OSError as e:
        raise SessionReadError(path, e.strerror or str(e)) from e

    if working_directory is None:
        working_directory = read_working_directory(path, head_bytes)

    lines, approximate_count = _tail_lines(path, stat.st_size, tail_bytes)
    last_message = find_last_message(lines, tail_records)
    last_modified = last_message.timestamp if last_message else stat.st_mtime

    return ConversationSummary(
        path=str(path),
        working_directory=working_directory,
        last_modified=last_modified,
        approximate_message_count=approximate_count,
        last_message=last_message,
    )


def list_session_files(
    project_dir: Path,
    extension: str = ".jsonl",
    max_age: Optional[float] = None,
    now: Optional[float] = None,
) -> List[SessionFileInfo]:
    """List session files directly inside a project directory.

    Files whose mtime is older than max_age seconds are left out. Files
    that disappear while listing are skipped.

    Raises:
        SessionReadError: if the directory cannot be listed
    """
    try:
        entries = list(os.scandir(project_dir))
    except OSError as e:
        raise SessionReadError(project_dir, e.strerror or str(e)) from e

    cutoff = None
    if max_age is not None and now is not None:
        cutoff = now - max_age

    files: List[SessionFileInfo] = []
    skipped = 0
    for entry in entries:
        if not entry.name.endswith(extension):
            continue
        try:
            if not entry.is_file():
                continue
            stat = entry.stat()
        except OSError:
            continue
        if cutoff is not None and stat.st_mtime < cutoff:
            skipped += 1
            continue
        files.append(SessionFileInfo(path=entry.path, mtime=stat.st_mtime, size=stat.st_size))

    if skipped:
        logger.debug("Skipped %d stale session file(s) in %s", skipped, project_dir)
    files.sort(key=lambda f: f.path)
    return files


def touch_latest_session(project_dir: Path, extension: str = ".jsonl", now: Optional[float] = None) -> Optional[Path]:
    """Bump the mtime of the most recently modified session file.

    Content is left untouched; other monitors see a change event with an
    unchanged size. Returns the touched path, or None if there was nothing
    to touch.
    """
    try:
        files = list_session_files(project_dir, extension)
    except SessionReadError:
        return None
    if not files:
        return None

    latest = max(files, key=lambda f: f.mtime)
    try:
        times = None if now is None else (now, now)
        os.utime(latest.path, times)
    except OSError as e:
        logger.debug("Could not touch %s: %s", latest.path, e)
        return None
    return Path(latest.path)

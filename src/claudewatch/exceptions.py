"""
Error taxonomy for claudewatch.

Only InferenceError is allowed to reach a get_status() caller (as a None
result). Every other error is recovered where it happens: unreadable
session files count as "no summary", malformed lines are skipped and
processes that vanish mid-scan are left out of the registry.
"""


class ClaudewatchError(Exception):
    """Base class for all claudewatch errors."""


class SessionReadError(ClaudewatchError, OSError):
    """A session log file or directory could not be read."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"cannot read {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class RecordParseError(ClaudewatchError, ValueError):
    """A single JSONL record is malformed.

    Raised per line and always recovered by skipping that line.
    """

    def __init__(self, line: str, reason: str = ""):
        self.line = line
        self.reason = reason
        preview = line[:80] + "..." if len(line) > 80 else line
        super().__init__(f"malformed record ({reason or 'invalid'}): {preview!r}")


class ProcessIntrospectionError(ClaudewatchError):
    """A process vanished or could not be inspected between listing and cwd lookup."""

    def __init__(self, pid: str, reason: str = ""):
        self.pid = pid
        self.reason = reason
        super().__init__(f"cannot inspect process {pid}: {reason or 'unknown error'}")


class InferenceError(ClaudewatchError):
    """Unexpected internal fault while computing a workspace status."""

    def __init__(self, workspace: str, cause: BaseException = None):
        self.workspace = workspace
        self.cause = cause
        message = f"status inference failed for {workspace}"
        if cause is not None:
            message += f": {cause!r}"
        super().__init__(message)

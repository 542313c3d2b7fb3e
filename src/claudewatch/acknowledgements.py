"""
Per-workspace record of the last status the user has seen.

When the user switches into a workspace, the timestamp justifying its
current status is recorded. Until a newer timestamp shows up, "executing"
and "recently finished" results justified by that timestamp or an older
one are reported as plain "running" instead.
"""

import threading
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class AcknowledgementRecord:
    workspace: str
    acknowledged_timestamp: float


class AcknowledgementTracker:
    """Holds at most one acknowledgement per workspace."""

    def __init__(self):
        self._records: Dict[str, AcknowledgementRecord] = {}
        self._lock = threading.Lock()

    def acknowledge(self, workspace: str, timestamp: float) -> AcknowledgementRecord:
        """Record timestamp as seen for the workspace, replacing any earlier record."""
        record = AcknowledgementRecord(workspace=workspace, acknowledged_timestamp=timestamp)
        with self._lock:
            self._records[workspace] = record
        return record

    def get(self, workspace: str) -> Optional[AcknowledgementRecord]:
        return self._records.get(workspace)

    def acknowledged_timestamp(self, workspace: str) -> Optional[float]:
        record = self._records.get(workspace)
        return record.acknowledged_timestamp if record else None

    def on_newer_message(self, workspace: str, timestamp: Optional[float]) -> bool:
        """Clear the acknowledgement if timestamp is strictly newer than it.

        Returns:
            True if a record was cleared
        """
        if timestamp is None:
            return False
        with self._lock:
            record = self._records.get(workspace)
            if record is None or timestamp <= record.acknowledged_timestamp:
                return False
            del self._records[workspace]
        return True

    def clear(self, workspace: Optional[str] = None) -> None:
        with self._lock:
            if workspace is None:
                self._records.clear()
            else:
                self._records.pop(workspace, None)

    def __contains__(self, workspace: str) -> bool:
        return workspace in self._records

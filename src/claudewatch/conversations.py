"""
Cache-through lookup of all conversation summaries for a workspace.
"""

import os
import time
from pathlib import Path
from typing import Callable, List, Optional

from .cache import MonitorCache
from .exceptions import SessionReadError
from .logging_config import get_logger
from .session_reader import (
    ConversationSummary,
    get_project_dir,
    list_session_files,
    normalize_workspace_key,
    read_summary,
    read_working_directory,
)
from .settings import MonitorSettings, get_projects_dir

logger = get_logger("conversations")


class ConversationIndex:
    """Finds and summarizes a workspace's session files through MonitorCache."""

    def __init__(
        self,
        cache: Optional[MonitorCache] = None,
        settings: Optional[MonitorSettings] = None,
        projects_dir: Optional[Path] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache or MonitorCache()
        self.settings = settings or MonitorSettings()
        self.projects_dir = Path(projects_dir) if projects_dir is not None else get_projects_dir()
        self._clock = clock

    def project_dir(self, workspace: str) -> Path:
        return get_project_dir(normalize_workspace_key(workspace), self.projects_dir)

    def conversations(self, workspace: str) -> List[ConversationSummary]:
        """All summaries for the workspace (unsorted; empty if it has none)."""
        key = normalize_workspace_key(workspace)
        return self.cache.workspace(key, lambda: self._load(key))

    def _load(self, workspace: str) -> List[ConversationSummary]:
        project_dir = str(self.project_dir(workspace))

        if not self.cache.dir_exists(project_dir, lambda: os.path.isdir(project_dir)):
            return []

        try:
            files = self.cache.listing(
                project_dir,
                lambda: list_session_files(
                    Path(project_dir),
                    self.settings.session_extension,
                    max_age=self.settings.session_max_age,
                    now=self._clock(),
                ),
            )
        except SessionReadError as e:
            logger.debug("%s", e)
            # Directory vanished or became unreadable; re-check existence next time
            self.cache.invalidate_dir_exists(project_dir)
            return []

        summaries: List[ConversationSummary] = []
        for info in files:
            try:
                summary = self.cache.summary(info.path, lambda p=info.path: self._read(p))
            except SessionReadError as e:
                logger.debug("%s", e)
                continue
            summaries.append(summary)
        return summaries

    def _read(self, path: str) -> ConversationSummary:
        settings = self.settings
        working_directory = self.cache.working_directory(
            path,
            lambda: read_working_directory(Path(path), settings.head_bytes, settings.head_scan_records),
        )
        summary = read_summary(
            Path(path),
            working_directory=working_directory,
            head_bytes=settings.head_bytes,
            tail_bytes=settings.tail_bytes,
            tail_records=settings.tail_scan_records,
        )
        role = summary.last_message.role if summary.last_message else "n/a"
        logger.debug(
            "Read %s: last message %.0fs ago (%s)",
            os.path.basename(path), self._clock() - summary.last_modified, role,
        )
        return summary

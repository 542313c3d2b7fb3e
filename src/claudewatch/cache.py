"""
Event-invalidated caches for session data.

Four independent tiers plus the per-workspace aggregate built from them:

    summaries      file path   -> ConversationSummary   evicted on change/delete of that file
    dir_exists     dir path    -> bool                  evicted when the dir appears/disappears
    listings       dir path    -> [SessionFileInfo]     evicted on create/delete inside the dir
    working_dirs   file path   -> cwd                   kept once non-empty (a session's cwd is fixed)
    workspaces     workspace   -> [ConversationSummary] evicted on any event for the workspace

Nothing expires on a timer. Reads are cache-through: a miss runs the loader
synchronously and stores the result. Each workspace's entries are only
mutated from that workspace's actor, so no locks are taken here.
"""

import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TypeVar

from .session_reader import ConversationSummary, SessionFileInfo

T = TypeVar("T")


@dataclass
class CacheStats:
    """Entry counts per tier, for debugging output."""

    summaries: int
    dir_exists: int
    listings: int
    working_dirs: int
    workspaces: int


class MonitorCache:
    """All cache tiers used by the status monitor."""

    def __init__(self):
        self._summaries: Dict[str, ConversationSummary] = {}
        self._dir_exists: Dict[str, bool] = {}
        self._listings: Dict[str, List[SessionFileInfo]] = {}
        self._working_dirs: Dict[str, str] = {}
        self._workspaces: Dict[str, List[ConversationSummary]] = {}
        # Last size seen per file, to tell appends from timestamp-only touches
        self._file_sizes: Dict[str, int] = {}

    @staticmethod
    def _get_or_load(table: Dict[str, T], key: str, load: Callable[[], T]) -> T:
        if key in table:
            return table[key]
        value = load()
        table[key] = value
        return value

    # ── Cache-through reads ───────────────────────────────────────────

    def summary(self, path: str, load: Callable[[], ConversationSummary]) -> ConversationSummary:
        return self._get_or_load(self._summaries, path, load)

    def dir_exists(self, directory: str, load: Callable[[], bool]) -> bool:
        return self._get_or_load(self._dir_exists, directory, load)

    def listing(self, directory: str, load: Callable[[], List[SessionFileInfo]]) -> List[SessionFileInfo]:
        return self._get_or_load(self._listings, directory, load)

    def working_directory(self, path: str, load: Callable[[], str]) -> str:
        """Fixed once observed; an empty result is not stored so the head is read again."""
        cached = self._working_dirs.get(path)
        if cached:
            return cached
        value = load()
        if value:
            self._working_dirs[path] = value
        return value

    def workspace(
        self, workspace: str, load: Callable[[], List[ConversationSummary]]
    ) -> List[ConversationSummary]:
        return self._get_or_load(self._workspaces, workspace, load)

    # ── Peeks (no loading) ────────────────────────────────────────────

    def cached_summary(self, path: str) -> Optional[ConversationSummary]:
        return self._summaries.get(path)

    def cached_working_directory(self, path: str) -> Optional[str]:
        return self._working_dirs.get(path)

    def cached_listing(self, directory: str) -> Optional[List[SessionFileInfo]]:
        return self._listings.get(directory)

    def is_listed(self, directory: str, path: str) -> bool:
        """True if path is in the cached listing for directory (False if not cached)."""
        listing = self._listings.get(directory)
        if listing is None:
            return False
        return any(info.path == path for info in listing)

    # ── Invalidation ──────────────────────────────────────────────────

    def invalidate_summary(self, path: str) -> None:
        self._summaries.pop(path, None)

    def invalidate_dir_exists(self, directory: str) -> None:
        self._dir_exists.pop(directory, None)

    def invalidate_listing(self, directory: str) -> None:
        self._listings.pop(directory, None)

    def invalidate_workspace(self, workspace: str) -> None:
        self._workspaces.pop(workspace, None)

    def forget_file(self, path: str) -> None:
        """Drop everything known about a deleted file except its cwd."""
        self._summaries.pop(path, None)
        self._file_sizes.pop(path, None)

    def forget_directory(self, directory: str) -> None:
        """Drop every entry for a project dir and the files directly inside it."""
        self._dir_exists.pop(directory, None)
        self._listings.pop(directory, None)
        for table in (self._summaries, self._file_sizes, self._working_dirs):
            for path in [p for p in table if os.path.dirname(p) == directory]:
                del table[path]

    def clear(self) -> None:
        """Drop every tier except the permanent working-directory tier."""
        self._summaries.clear()
        self._dir_exists.clear()
        self._listings.clear()
        self._workspaces.clear()
        self._file_sizes.clear()

    # ── File sizes ────────────────────────────────────────────────────

    def swap_file_size(self, path: str, size: int) -> Optional[int]:
        """Record a file's size and return the previously recorded one."""
        previous = self._file_sizes.get(path)
        self._file_sizes[path] = size
        return previous

    def stats(self) -> CacheStats:
        return CacheStats(
            summaries=len(self._summaries),
            dir_exists=len(self._dir_exists),
            listings=len(self._listings),
            working_dirs=len(self._working_dirs),
            workspaces=len(self._workspaces),
        )

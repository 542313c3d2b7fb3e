"""
File watching for session logs, built on watchdog.

Each watched workspace gets a non-recursive watch on its project directory
(~/.claude/projects/{encoded-path}/). The projects root is watched too, so
a workspace whose directory does not exist yet is picked up the moment the
agent creates it.

Handlers do no filesystem I/O and never touch monitor state: they turn
watchdog events into (workspace, kind, path) calls and return.
"""

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .logging_config import get_logger
from .session_reader import get_project_dir, normalize_workspace_key

logger = get_logger("watcher")

EVENT_CREATED = "created"
EVENT_CHANGED = "changed"
EVENT_DELETED = "deleted"
EVENT_DIR_CREATED = "dir_created"
EVENT_DIR_DELETED = "dir_deleted"

# (workspace, kind, path)
WatchCallback = Callable[[str, str, str], None]


def _event_path(path) -> str:
    """watchdog may hand out bytes paths."""
    return os.fsdecode(path)


class SessionLogEventHandler(FileSystemEventHandler):
    """Forwards session-file events in one project directory."""

    def __init__(self, workspace: str, callback: WatchCallback, extension: str = ".jsonl"):
        super().__init__()
        self.workspace = workspace
        self.callback = callback
        self.extension = extension

    def _matches(self, path: str) -> bool:
        return path.endswith(self.extension)

    def _emit(self, kind: str, path: str) -> None:
        try:
            self.callback(self.workspace, kind, path)
        except Exception:
            logger.exception("Watch callback failed for %s", path)

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = _event_path(event.src_path)
        if self._matches(path):
            self._emit(EVENT_CREATED, path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = _event_path(event.src_path)
        if self._matches(path):
            self._emit(EVENT_CHANGED, path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        path = _event_path(event.src_path)
        if self._matches(path):
            self._emit(EVENT_DELETED, path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        src_path = _event_path(event.src_path)
        dest_path = _event_path(event.dest_path) if event.dest_path else ""
        if self._matches(src_path):
            self._emit(EVENT_DELETED, src_path)
        if dest_path and self._matches(dest_path) and os.path.dirname(dest_path) == os.path.dirname(src_path):
            self._emit(EVENT_CREATED, dest_path)


class ProjectsRootEventHandler(FileSystemEventHandler):
    """Reports project directories appearing in or leaving the projects root."""

    def __init__(self, on_dir_created: Callable[[str], None], on_dir_deleted: Callable[[str], None]):
        super().__init__()
        self.on_dir_created = on_dir_created
        self.on_dir_deleted = on_dir_deleted

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self.on_dir_created(_event_path(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self.on_dir_deleted(_event_path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self.on_dir_deleted(_event_path(event.src_path))
            if event.dest_path:
                self.on_dir_created(_event_path(event.dest_path))


@dataclass
class WatchHandle:
    """One workspace's subscription to its project directory."""

    workspace: str
    project_dir: str
    watch: Optional[object] = None  # watchdog ObservedWatch while scheduled
    active: bool = True

    @property
    def scheduled(self) -> bool:
        return self.watch is not None


class WatchScheduler:
    """Owns the watchdog Observer and the per-workspace watches."""

    def __init__(
        self,
        projects_dir: Path,
        callback: WatchCallback,
        extension: str = ".jsonl",
        observer_factory: Callable[[], object] = Observer,
    ):
        self.projects_dir = Path(projects_dir)
        self.callback = callback
        self.extension = extension
        self._observer_factory = observer_factory
        self._observer = None
        self._root_watch = None
        self._handles: Dict[str, WatchHandle] = {}
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start the observer and schedule every pending watch (idempotent)."""
        with self._lock:
            if self._observer is not None:
                return
            self._observer = self._observer_factory()
            self._schedule_root()
            for handle in self._handles.values():
                self._schedule(handle)
            self._observer.start()
            logger.debug("Watching %s", self.projects_dir)

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        """Stop the observer; handles stay registered for a later start()."""
        with self._lock:
            observer = self._observer
            if observer is None:
                return
            self._observer = None
            self._root_watch = None
            for handle in self._handles.values():
                handle.watch = None
        observer.stop()
        observer.join(timeout)

    def start_watching(self, workspace: str) -> WatchHandle:
        """Begin watching a workspace's project directory.

        Watching the same workspace twice returns the existing handle.
        """
        key = normalize_workspace_key(workspace)
        with self._lock:
            handle = self._handles.get(key)
            if handle is not None:
                return handle
            handle = WatchHandle(
                workspace=key,
                project_dir=str(get_project_dir(key, self.projects_dir)),
            )
            self._handles[key] = handle
            if self._observer is not None:
                self._schedule(handle)
            return handle

    def stop_watching(self, handle: WatchHandle) -> None:
        """Release a watch. Safe to call more than once."""
        with self._lock:
            if not handle.active:
                return
            handle.active = False
            self._unschedule(handle)
            if self._handles.get(handle.workspace) is handle:
                del self._handles[handle.workspace]

    def handle_for(self, workspace: str) -> Optional[WatchHandle]:
        return self._handles.get(normalize_workspace_key(workspace))

    def retry_pending(self) -> None:
        """Schedule watches whose directories have appeared since the last try."""
        with self._lock:
            if self._observer is None:
                return
            if self._root_watch is None:
                self._schedule_root()
            for handle in self._handles.values():
                if not handle.scheduled:
                    self._schedule(handle)

    # ── Internals ────────────────────────────────────────────────────

    def _schedule_root(self) -> None:
        if not self.projects_dir.is_dir():
            logger.debug("Projects dir %s does not exist yet", self.projects_dir)
            return
        handler = ProjectsRootEventHandler(self._on_dir_created, self._on_dir_deleted)
        try:
            self._root_watch = self._observer.schedule(handler, str(self.projects_dir), recursive=False)
        except OSError as e:
            logger.warning("Cannot watch %s: %s", self.projects_dir, e)

    def _schedule(self, handle: WatchHandle) -> bool:
        if handle.scheduled or not os.path.isdir(handle.project_dir):
            return handle.scheduled
        handler = SessionLogEventHandler(handle.workspace, self.callback, self.extension)
        try:
            handle.watch = self._observer.schedule(handler, handle.project_dir, recursive=False)
        except OSError as e:
            logger.warning("Cannot watch %s: %s", handle.project_dir, e)
            return False
        logger.debug("Watching %s for %s", handle.project_dir, handle.workspace)
        return True

    def _unschedule(self, handle: WatchHandle) -> None:
        watch = handle.watch
        handle.watch = None
        if watch is None or self._observer is None:
            return
        try:
            self._observer.unschedule(watch)
        except (KeyError, ValueError):
            pass

    def _find_by_dir(self, directory: str) -> Optional[WatchHandle]:
        directory = os.path.normpath(directory)
        for handle in self._handles.values():
            if os.path.normpath(handle.project_dir) == directory:
                return handle
        return None

    def _on_dir_created(self, directory: str) -> None:
        with self._lock:
            handle = self._find_by_dir(directory)
            if handle is None or self._observer is None:
                return
            self._schedule(handle)
            workspace = handle.workspace
        self.callback(workspace, EVENT_DIR_CREATED, directory)

    def _on_dir_deleted(self, directory: str) -> None:
        with self._lock:
            handle = self._find_by_dir(directory)
            if handle is None:
                return
            self._unschedule(handle)
            workspace = handle.workspace
        self.callback(workspace, EVENT_DIR_DELETED, directory)

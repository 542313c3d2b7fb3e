"""
Status monitor for Claude Code workspaces.

ClaudeStatusMonitor ties the pieces together:

- ConversationIndex   cache-backed session summaries per workspace
- ProcessRegistry     which workspaces have a live agent process
- WatchScheduler      watchdog events that invalidate the caches
- status_engine       pure precedence rules
- AcknowledgementTracker

Every workspace has its own WorkspaceActor. Watch events, timer ticks and
public calls for a workspace are all executed on that actor, so cache
invalidation and the recompute that follows never interleave for one key.
Subscribers are called on a separate notifier thread, never on an actor,
so a callback may query any workspace.

Lifecycle:

    monitor = ClaudeStatusMonitor()
    monitor.set_workspaces(["/home/me/proj"])
    monitor.subscribe_to_changes(on_change)
    monitor.start()
    ...
    monitor.stop()

Without start() everything runs inline on the calling thread, which is
what the one-shot CLI and most tests use.
"""

import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .acknowledgements import AcknowledgementTracker
from .cache import MonitorCache
from .conversations import ConversationIndex
from .exceptions import InferenceError
from .logging_config import get_logger
from .message_classifier import MessageClassifier, classify_message
from .monitor_logging import MonitorLogger
from .periodic import PeriodicTask
from .process_registry import ProcessRegistry
from .protocols import ChangeCallback, ProcessInspectorInterface, Unsubscribe
from .session_reader import normalize_workspace_key, touch_latest_session
from .settings import MonitorSettings, get_projects_dir
from .status_constants import StatusInfo
from .status_engine import apply_acknowledgement, infer_raw_status, status_changed
from .watcher import (
    EVENT_CHANGED,
    EVENT_CREATED,
    EVENT_DELETED,
    EVENT_DIR_CREATED,
    EVENT_DIR_DELETED,
    WatchHandle,
    WatchScheduler,
)
from .workspace_actor import WorkspaceActor

logger = get_logger("monitor")


class ClaudeStatusMonitor:
    """Tracks the agent status of a set of workspaces."""

    def __init__(
        self,
        settings: Optional[MonitorSettings] = None,
        projects_dir: Optional[Path] = None,
        inspector: Optional[ProcessInspectorInterface] = None,
        clock: Callable[[], float] = time.time,
        event_logger: Optional[MonitorLogger] = None,
        classifier: MessageClassifier = classify_message,
        observer_factory: Optional[Callable[[], object]] = None,
    ):
        self.settings = settings or MonitorSettings()
        self.projects_dir = Path(projects_dir) if projects_dir is not None else get_projects_dir()
        self._clock = clock
        self._classifier = classifier
        self.event_logger = event_logger or MonitorLogger(quiet=True)

        self.cache = MonitorCache()
        self.index = ConversationIndex(self.cache, self.settings, self.projects_dir, clock)
        self.registry = ProcessRegistry(
            inspector,
            self.settings.agent_process_name,
            clock,
            introspection_timeout=self.settings.introspection_timeout,
        )
        self.acknowledgements = AcknowledgementTracker()

        scheduler_kwargs = {}
        if observer_factory is not None:
            scheduler_kwargs["observer_factory"] = observer_factory
        self.scheduler = WatchScheduler(
            self.projects_dir, self._on_watch_event, self.settings.session_extension, **scheduler_kwargs
        )

        self._actors: Dict[str, WorkspaceActor] = {}
        self._handles: Dict[str, WatchHandle] = {}
        self._statuses: Dict[str, StatusInfo] = {}
        self._started_at: Dict[str, float] = {}
        self._subscribers: List[ChangeCallback] = []
        self._notifier = WorkspaceActor("notifications", name="StatusNotifier")

        self._focused = True
        self._running = False
        self._lock = threading.RLock()

        self._recompute_task = PeriodicTask(
            self.settings.recompute_interval, self._on_recompute_tick, name="StatusRecompute"
        )
        self._rescan_task = PeriodicTask(
            self.settings.process_rescan_interval, self.refresh_processes, name="ProcessRescan"
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start actors, file watching and timers (idempotent)."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._notifier.start()
            for actor in self._actors.values():
                actor.start()
            self.scheduler.start()
            self._recompute_task.start()
            if self._focused:
                self._rescan_task.start(immediate=True)
        logger.debug("Monitor started for %d workspace(s)", len(self._actors))

    def stop(self) -> None:
        """Stop timers, watches and actors (idempotent)."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            actors = list(self._actors.values())
        self._recompute_task.stop(timeout=2.0)
        self._rescan_task.stop(timeout=2.0)
        self.scheduler.stop()
        for actor in actors:
            actor.stop()
        self._notifier.stop()
        logger.debug("Monitor stopped")

    def __enter__(self) -> "ClaudeStatusMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # =========================================================================
    # Workspaces
    # =========================================================================

    @property
    def workspaces(self) -> List[str]:
        return list(self._actors)

    def add_workspace(self, workspace: str) -> str:
        """Start monitoring a workspace; returns its normalized key."""
        key = normalize_workspace_key(workspace)
        with self._lock:
            if key in self._actors:
                return key
            actor = WorkspaceActor(key)
            self._actors[key] = actor
            if self._running:
                actor.start()
            self._handles[key] = self.scheduler.start_watching(key)
        actor.submit(lambda: self._mark_started(key))
        logger.debug("Added workspace %s", key)
        return key

    def remove_workspace(self, workspace: str) -> None:
        """Stop monitoring a workspace and forget its state."""
        key = normalize_workspace_key(workspace)
        with self._lock:
            actor = self._actors.pop(key, None)
            handle = self._handles.pop(key, None)
        if handle is not None:
            self.scheduler.stop_watching(handle)
        if actor is None:
            return
        # Queued behind any pending events, so nothing repopulates afterwards
        actor.call(lambda: self._forget(key))
        actor.stop()

    def _forget(self, key: str) -> None:
        self._statuses.pop(key, None)
        self._started_at.pop(key, None)
        self.acknowledgements.clear(key)
        self.cache.invalidate_workspace(key)
        self.cache.forget_directory(str(self.index.project_dir(key)))

    def set_workspaces(self, workspaces: List[str]) -> List[str]:
        """Replace the monitored set; returns the keys in the given order."""
        keys = [self.add_workspace(w) for w in workspaces]
        for key in self.workspaces:
            if key not in keys:
                self.remove_workspace(key)
        return keys

    def _actor_for(self, key: str) -> WorkspaceActor:
        actor = self._actors.get(key)
        if actor is None:
            self.add_workspace(key)
            actor = self._actors[key]
        return actor

    def _mark_started(self, key: str) -> float:
        """Monitoring start time for key, recorded on first use."""
        return self._started_at.setdefault(key, self._clock())

    def monitoring_started_at(self, workspace: str) -> Optional[float]:
        return self._started_at.get(normalize_workspace_key(workspace))

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self, workspace: str) -> Optional[StatusInfo]:
        """Current status of a workspace.

        Returns None only when inference itself failed; callers should keep
        showing whatever they showed before.
        """
        key = normalize_workspace_key(workspace)
        try:
            return self._actor_for(key).call(lambda: self._recompute(key))
        except InferenceError as e:
            logger.warning("%s", e)
            return None

    def infer_status(self, workspace: str) -> StatusInfo:
        """Compute a status without storing it or notifying subscribers.

        Raises:
            InferenceError: on an unexpected internal fault
        """
        key = normalize_workspace_key(workspace)
        return self._actor_for(key).call(lambda: self._compute(key))

    def cached_status(self, workspace: str) -> Optional[StatusInfo]:
        """Last computed status, without recomputing."""
        return self._statuses.get(normalize_workspace_key(workspace))

    def refresh_all(self) -> Dict[str, Optional[StatusInfo]]:
        """Recompute every workspace synchronously."""
        return {key: self.get_status(key) for key in self.workspaces}

    def _compute(self, key: str) -> StatusInfo:
        """Runs on the workspace's actor."""
        try:
            started_at = self._mark_started(key)
            conversations = self.index.conversations(key)
            raw = infer_raw_status(
                conversations,
                self.registry.is_process_running(key),
                self._clock(),
                self.settings,
                started_at,
                self._classifier,
            )
            if self.acknowledgements.on_newer_message(key, raw.last_message_time):
                logger.debug("Acknowledgement for %s cleared by newer message", key)
            return apply_acknowledgement(raw, self.acknowledgements.acknowledged_timestamp(key))
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(key, e) from e

    def _recompute(self, key: str) -> StatusInfo:
        """Compute, store and notify on change. Runs on the workspace's actor."""
        info = self._compute(key)
        previous = self._statuses.get(key)
        self._statuses[key] = info
        if status_changed(previous, info):
            self.event_logger.status_change(
                key, previous.status if previous else None, info.status, info.last_message_time
            )
            self._notifier.submit(lambda: self._emit(key, info))
        return info

    def _safe_recompute(self, key: str) -> None:
        try:
            self._recompute(key)
        except InferenceError as e:
            logger.warning("%s", e)

    def _post_recompute(self, key: str) -> None:
        actor = self._actors.get(key)
        if actor is not None:
            actor.submit(lambda: self._safe_recompute(key))

    # =========================================================================
    # Subscribers
    # =========================================================================

    def subscribe_to_changes(self, callback: ChangeCallback) -> Unsubscribe:
        """Register callback(workspace, status_info) for genuine status changes."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, key: str, info: StatusInfo) -> None:
        for callback in list(self._subscribers):
            try:
                callback(key, info)
            except Exception:
                logger.exception("Status change subscriber failed for %s", key)

    # =========================================================================
    # Acknowledgement and liveness pings
    # =========================================================================

    def acknowledge(self, workspace: str, propagate: bool = False) -> Optional[float]:
        """Mark the workspace's current state as seen.

        With propagate=True the newest session file is touched afterwards so
        other monitors watching the same workspace drop "recently finished"
        too.

        Returns:
            The acknowledged timestamp, or None if there was nothing to acknowledge
        """
        key = normalize_workspace_key(workspace)
        try:
            timestamp = self._actor_for(key).call(lambda: self._acknowledge(key))
        except InferenceError as e:
            logger.warning("%s", e)
            return None
        if propagate:
            self.touch_workspace(key)
        return timestamp

    def _acknowledge(self, key: str) -> Optional[float]:
        info = self._statuses.get(key)
        if info is None:
            info = self._compute(key)
        timestamp = info.last_message_time
        if timestamp is None:
            conversations = self.index.conversations(key)
            if conversations:
                timestamp = max(c.last_modified for c in conversations)
        if timestamp is None:
            return None
        self.acknowledgements.acknowledge(key, timestamp)
        logger.debug("Acknowledged %s at %s", key, timestamp)
        self._recompute(key)
        return timestamp

    def touch_workspace(self, workspace: str) -> Optional[Path]:
        """Send a liveness ping by touching the newest session file."""
        key = normalize_workspace_key(workspace)
        touched = touch_latest_session(
            self.index.project_dir(key), self.settings.session_extension, now=self._clock()
        )
        if touched is not None:
            self.event_logger.debug(f"Touched {touched.name} for {key}")
        return touched

    # =========================================================================
    # Cache maintenance
    # =========================================================================

    def clear_cache(self) -> None:
        """Drop all cached data except the permanent working-directory tier."""
        self.cache.clear()
        logger.debug("Cache cleared")

    def clear_workspace_cache(self, workspace: str) -> None:
        key = normalize_workspace_key(workspace)
        self._actor_for(key).call(lambda: self.cache.invalidate_workspace(key))

    # =========================================================================
    # Focus and timers
    # =========================================================================

    @property
    def focused(self) -> bool:
        return self._focused

    def set_focused(self, focused: bool) -> None:
        """Host focus changed: start or stop process rescans."""
        focused = bool(focused)
        with self._lock:
            if focused == self._focused:
                return
            self._focused = focused
            self.registry.set_focused(focused)
            running = self._running
        if not running:
            return
        if focused:
            self._rescan_task.start(immediate=True)
            self.event_logger.info("Process monitoring started")
            for key in self.workspaces:
                self._post_recompute(key)
        else:
            self._rescan_task.stop(timeout=2.0)
            self.event_logger.info("Process monitoring stopped")

    def refresh_processes(self) -> bool:
        """Rescan agent processes; recompute every workspace if the set changed."""
        changed = self.registry.refresh()
        if changed:
            logger.debug("Process set changed (%d live)", len(self.registry))
            for key in self.workspaces:
                self._post_recompute(key)
        return changed

    def _on_recompute_tick(self) -> None:
        if not self._focused:
            return
        self.scheduler.retry_pending()
        for key in self.workspaces:
            self._post_recompute(key)

    # =========================================================================
    # File events
    # =========================================================================

    def _on_watch_event(self, workspace: str, kind: str, path: str) -> None:
        """watchdog thread: hand the event to the workspace's actor."""
        actor = self._actors.get(workspace)
        if actor is None:
            return
        actor.submit(lambda: self._handle_event(workspace, kind, path))

    def _handle_event(self, key: str, kind: str, path: str) -> None:
        """Apply one file event to the caches, then recompute. Runs on the actor."""
        project_dir = str(self.index.project_dir(key))
        name = os.path.basename(path)

        if kind == EVENT_CREATED:
            self.cache.invalidate_listing(project_dir)
            self.event_logger.info(f"New conversation: {name}")
        elif kind == EVENT_DELETED:
            self.cache.forget_file(path)
            self.cache.invalidate_listing(project_dir)
            self.event_logger.info(f"Conversation deleted: {name}")
        elif kind == EVENT_CHANGED:
            self._handle_change(key, project_dir, path)
        elif kind in (EVENT_DIR_CREATED, EVENT_DIR_DELETED):
            self.cache.invalidate_dir_exists(project_dir)
            self.cache.invalidate_listing(project_dir)
        else:
            logger.debug("Ignoring unknown event %s for %s", kind, path)
            return

        self.cache.invalidate_workspace(key)
        self._safe_recompute(key)

    def _handle_change(self, key: str, project_dir: str, path: str) -> None:
        try:
            size = os.stat(path).st_size
        except OSError:
            # Gone already; the delete event will follow
            self.cache.invalidate_summary(path)
            return

        previous = self.cache.swap_file_size(path, size)
        if previous is not None and previous == size:
            # Timestamp-only touch from another monitor
            self._started_at[key] = self._clock()
            self.event_logger.info(f"Liveness ping: {os.path.basename(path)}")
            return

        self.cache.invalidate_summary(path)
        if not self.cache.is_listed(project_dir, path):
            self.cache.invalidate_listing(project_dir)

"""
Serialized execution context for one workspace.

Every mutation of a workspace's cache entries, monitoring start time and
cached status runs on that workspace's actor thread, one job at a time.
File-watcher callbacks and timers only post jobs here; they never touch
state directly. Different workspaces run independently.
"""

import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional, TypeVar

from .logging_config import get_logger

logger = get_logger("workspace_actor")

T = TypeVar("T")

_STOP = object()


class WorkspaceActor:
    """Single daemon thread draining a FIFO of jobs for one workspace.

    Before start() and after stop(), submitted jobs run inline on the
    caller's thread so the monitor stays usable without threads (tests,
    one-shot CLI queries).
    """

    def __init__(self, workspace: str, name: Optional[str] = None):
        self.workspace = workspace
        self.name = name or f"WorkspaceActor[{workspace}]"
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()  # protect start/stop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the actor thread (idempotent)."""
        with self._lock:
            if self.running:
                return
            self._queue = queue.Queue()
            self._thread = threading.Thread(
                target=self._run,
                name=self.name,
                daemon=True,
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        """Finish queued jobs, then stop the thread (idempotent)."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
            if thread is threading.current_thread():
                self._thread = None
                return
            thread.join(timeout=timeout)
            self._thread = None
            if thread.is_alive():
                return
        # Jobs that raced in behind the stop marker
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not _STOP:
                self._execute(*item)

    def submit(self, fn: Callable[[], T]) -> "Future[T]":
        """Queue fn and return a Future for its result."""
        future: "Future[T]" = Future()
        if not self.running or threading.current_thread() is self._thread:
            self._execute(fn, future)
        else:
            self._queue.put((fn, future))
        return future

    def call(self, fn: Callable[[], T], timeout: Optional[float] = None) -> T:
        """Run fn on the actor and wait for its result (re-raises its exception)."""
        return self.submit(fn).result(timeout=timeout)

    @staticmethod
    def _execute(fn: Callable[[], Any], future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn()
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            fn, future = item
            self._execute(fn, future)
            exc = future.exception() if not future.cancelled() else None
            if exc is not None:
                logger.debug("Job for %s raised: %s", self.workspace, exc)

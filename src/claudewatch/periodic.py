"""
Background timer that calls a function every N seconds.
"""

import threading
from typing import Callable, Optional

from .logging_config import get_logger

logger = get_logger("periodic")


class PeriodicTask:
    """
    Repeating timer on a daemon thread.

    - Call .start() to begin ticking (optionally running once immediately).
    - Call .stop() to ask it to shut down; safe to call more than once.

    An exception from the callback is logged and the timer keeps going.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "PeriodicTask"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()  # protect start/stop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, immediate: bool = False) -> None:
        """Start the timer thread (idempotent)."""
        with self._lock:
            if self.running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event, immediate), name=self.name, daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request the timer to stop and optionally wait for it."""
        with self._lock:
            if self._thread is None:
                return
            self._stop_event.set()
            if self._thread is not threading.current_thread():
                self._thread.join(timeout=timeout)
            # Don't reuse threads
            self._thread = None

    def _tick(self) -> None:
        try:
            self.callback()
        except Exception:
            logger.exception("%s callback failed", self.name)

    def _run(self, stop_event: threading.Event, immediate: bool) -> None:
        if immediate and not stop_event.is_set():
            self._tick()
        # wait() returns True once stop is requested
        while not stop_event.wait(self.interval):
            self._tick()

"""
Unit tests for periodic module.
"""

import threading

from claudewatch.periodic import PeriodicTask


class TestPeriodicTask:

    def test_ticks_repeatedly(self):
        ticks = []
        done = threading.Event()

        def tick():
            ticks.append(1)
            if len(ticks) >= 3:
                done.set()

        task = PeriodicTask(0.01, tick)
        task.start()
        try:
            assert done.wait(5)
        finally:
            task.stop(timeout=5)

    def test_immediate_runs_before_first_interval(self):
        ran = threading.Event()
        task = PeriodicTask(60, ran.set)
        task.start(immediate=True)
        try:
            assert ran.wait(5)
        finally:
            task.stop(timeout=5)

    def test_no_tick_without_immediate(self):
        ran = threading.Event()
        task = PeriodicTask(60, ran.set)
        task.start()
        task.stop(timeout=5)
        assert not ran.is_set()

    def test_callback_exception_does_not_stop_timer(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")
            done.set()

        task = PeriodicTask(0.01, flaky)
        task.start()
        try:
            assert done.wait(5)
        finally:
            task.stop(timeout=5)

    def test_start_stop_idempotent(self):
        task = PeriodicTask(60, lambda: None)
        task.stop()
        task.start()
        thread = task._thread
        task.start()
        assert task._thread is thread
        task.stop(timeout=5)
        task.stop(timeout=5)
        assert not task.running

    def test_restart_after_stop(self):
        ran = threading.Event()
        task = PeriodicTask(60, ran.set)
        task.start()
        task.stop(timeout=5)
        task.start(immediate=True)
        try:
            assert ran.wait(5)
        finally:
            task.stop(timeout=5)

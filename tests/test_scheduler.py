#=============================================================================
# File        : tests/test_scheduler.py
# Project     : ResGuard v1.0
# Component   : Repeating Scheduler Test Suite
# Description : Single-thread job execution, cancellation and shutdown
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import sys
import time
import logging
import threading
from pathlib import Path

import pytest

# Add resguard to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))

from resguard.scheduler import RepeatingScheduler


def wait_for(predicate, timeout=5.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def scheduler():
    s = RepeatingScheduler("test-scheduler")
    yield s
    s.shutdown()


class TestScheduling:

    def test_runs_job_repeatedly(self, scheduler):
        calls = []
        job = scheduler.schedule("tick", 0.02, lambda: calls.append(1))

        assert wait_for(lambda: len(calls) >= 3)
        assert job.run_count >= 3
        assert scheduler.is_running

    def test_run_immediately(self, scheduler):
        called = threading.Event()
        scheduler.schedule("now", 60, called.set, run_immediately=True)
        assert called.wait(2.0)

    def test_first_run_waits_one_interval(self, scheduler):
        called = threading.Event()
        scheduler.schedule("later", 60, called.set)
        assert not called.wait(0.1)

    @pytest.mark.parametrize("interval", [0, -1])
    def test_rejects_non_positive_interval(self, scheduler, interval):
        with pytest.raises(ValueError):
            scheduler.schedule("bad", interval, lambda: None)

    def test_jobs_share_one_thread(self, scheduler):
        idents = set()
        counts = {'a': 0, 'b': 0}

        def make(name):
            def run():
                idents.add(threading.get_ident())
                counts[name] += 1
            return run

        scheduler.schedule("a", 0.02, make('a'))
        scheduler.schedule("b", 0.03, make('b'))

        assert wait_for(lambda: counts['a'] >= 3 and counts['b'] >= 3)
        assert len(idents) == 1
        assert threading.get_ident() not in idents

    def test_jobs_never_overlap(self, scheduler):
        active = []
        overlaps = []
        runs = []

        def slow():
            if active:
                overlaps.append(True)
            active.append(1)
            time.sleep(0.03)
            active.pop()
            runs.append(1)

        scheduler.schedule("slow-a", 0.01, slow)
        scheduler.schedule("slow-b", 0.01, slow)

        assert wait_for(lambda: len(runs) >= 6)
        assert overlaps == []

    def test_failing_job_stays_scheduled(self, scheduler, caplog):
        attempts = []

        def boom():
            attempts.append(1)
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            scheduler.schedule("boom", 0.02, boom)
            assert wait_for(lambda: len(attempts) >= 2)

        assert "Scheduled job 'boom' failed: boom" in caplog.text


class TestCancelAndShutdown:

    def test_cancel_stops_job(self, scheduler):
        calls = []
        job = scheduler.schedule("tick", 0.02, lambda: calls.append(1))
        assert wait_for(lambda: len(calls) >= 1)

        scheduler.cancel(job)
        settled = len(calls)
        time.sleep(0.1)

        assert job.cancelled
        assert len(calls) <= settled + 1
        assert job not in scheduler.active_jobs

    def test_cancel_none_and_twice(self, scheduler):
        job = scheduler.schedule("tick", 60, lambda: None)
        scheduler.cancel(None)
        scheduler.cancel(job)
        scheduler.cancel(job)
        assert scheduler.active_jobs == []

    def test_shutdown_is_idempotent(self):
        s = RepeatingScheduler()
        s.schedule("tick", 0.02, lambda: None)
        assert wait_for(lambda: s.is_running)

        s.shutdown()
        s.shutdown()

        assert not s.is_running
        assert s.active_jobs == []

    def test_shutdown_without_jobs(self):
        s = RepeatingScheduler()
        s.shutdown()
        assert not s.is_running

    def test_schedule_after_shutdown_restarts(self):
        s = RepeatingScheduler()
        s.schedule("first", 60, lambda: None)
        s.shutdown()

        called = threading.Event()
        try:
            s.schedule("second", 0.02, called.set)
            assert called.wait(2.0)
            assert s.is_running
        finally:
            s.shutdown()

    def test_job_may_shut_down_its_own_scheduler(self):
        s = RepeatingScheduler()
        done = threading.Event()

        def stop_self():
            s.shutdown()
            done.set()

        s.schedule("stopper", 0.02, stop_self)
        assert done.wait(2.0)
        assert wait_for(lambda: not s.is_running)

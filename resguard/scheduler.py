#=============================================================================
# File        : resguard/scheduler.py
# Project     : ResGuard v1.0
# Component   : Scheduler - Single-Thread Repeating Task Runner
# Description : Background timer channel shared by the sampler and the
#               optimize cycle.
#               • One daemon thread runs every job to completion in turn
#               • Per-job interval and cancellation handle
#               • Immediate wake-up on cancel/shutdown
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Threading
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: threading, time, logging
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_scheduler.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

_logger = logging.getLogger(__name__)


class ScheduledJob:
    """Handle for a repeating job; pass it back to ``cancel()``."""

    __slots__ = ("name", "interval_s", "callback", "next_run", "run_count", "cancelled")

    def __init__(self, name: str, interval_s: float, callback: Callable[[], object],
                 next_run: float) -> None:
        self.name = name
        self.interval_s = interval_s
        self.callback = callback
        self.next_run = next_run
        self.run_count = 0
        self.cancelled = False

    def __repr__(self) -> str:
        return (f"ScheduledJob(name={self.name!r}, interval_s={self.interval_s}, "
                f"runs={self.run_count}, cancelled={self.cancelled})")


class RepeatingScheduler:
    """
    Runs repeating jobs on a single background thread.

    Jobs never overlap each other: the thread picks the job that is due
    soonest, waits for it, runs it to completion and reschedules it. A job
    that raises is logged and stays scheduled. The thread is started lazily
    by the first ``schedule()`` and again after a ``shutdown()``.
    """

    def __init__(self, name: str = "ResGuard-Scheduler",
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._name = name
        self._clock = clock
        self._cond = threading.Condition()
        self._jobs: List[ScheduledJob] = []
        self._thread: Optional[threading.Thread] = None
        self._shutdown = False

    def schedule(self, name: str, interval_s: float, callback: Callable[[], object],
                 run_immediately: bool = False) -> ScheduledJob:
        """Schedule ``callback`` every ``interval_s`` seconds."""
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s}")

        with self._cond:
            first = self._clock() if run_immediately else self._clock() + interval_s
            job = ScheduledJob(name, interval_s, callback, first)
            self._jobs.append(job)
            self._ensure_thread()
            self._cond.notify_all()

        _logger.debug(f"Scheduled job '{name}' every {interval_s}s")
        return job

    def cancel(self, job: Optional[ScheduledJob]) -> None:
        """Cancel a job. Safe on ``None`` and on already cancelled jobs."""
        if job is None:
            return
        with self._cond:
            job.cancelled = True
            if job in self._jobs:
                self._jobs.remove(job)
                _logger.debug(f"Cancelled job '{job.name}'")
            self._cond.notify_all()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Cancel every job and stop the thread. Idempotent."""
        with self._cond:
            for job in self._jobs:
                job.cancelled = True
            self._jobs.clear()
            self._shutdown = True
            thread = self._thread
            self._thread = None
            self._cond.notify_all()

        # A job calling shutdown() cannot join its own thread
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=timeout)

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def active_jobs(self) -> List[ScheduledJob]:
        with self._cond:
            return list(self._jobs)

    def _ensure_thread(self) -> None:
        # Caller holds self._cond
        if self._thread is not None and self._thread.is_alive():
            return
        self._shutdown = False
        self._thread = threading.Thread(target=self._run_loop, name=self._name, daemon=True)
        self._thread.start()

    def _next_due(self, me: threading.Thread) -> Optional[ScheduledJob]:
        # Caller holds self._cond; blocks until a job is due, shutdown, or replacement
        while not self._shutdown and self._thread is me:
            if not self._jobs:
                self._cond.wait()
                continue
            job = min(self._jobs, key=lambda j: j.next_run)
            delay = job.next_run - self._clock()
            if delay <= 0:
                # Fixed cadence without catch-up bursts after a slow job
                job.next_run = max(job.next_run + job.interval_s, self._clock())
                return job
            self._cond.wait(delay)
        return None

    def _run_loop(self) -> None:
        _logger.debug("Scheduler thread started")
        me = threading.current_thread()

        while True:
            with self._cond:
                if self._thread is not me:
                    break
                job = self._next_due(me)
            if job is None:
                break
            if job.cancelled:
                continue

            try:
                job.callback()
            except Exception as e:
                _logger.error(f"Scheduled job '{job.name}' failed: {e}")
            finally:
                job.run_count += 1

        _logger.debug("Scheduler thread stopped")

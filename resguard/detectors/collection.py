#=============================================================================
# File        : resguard/detectors/collection.py
# Project     : ResGuard v1.0
# Component   : Collection Scheduler - Cooldown-Gated Explicit GC
# Description : Throttled explicit garbage-collection requests
#               • Injected collector strategy (gc.collect or no-op)
#               • Heap measurement before and after each collection
#               • At most one automatic collection per cooldown window
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, GC
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: gc, platform, threading, time, report
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_collection.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import gc
import time
import logging
import platform
import threading
from typing import Callable, Optional, Protocol, runtime_checkable

from ..report import CollectionResult

_logger = logging.getLogger(__name__)

# Platform detection for cross-platform quirks
_IS_PYPY = platform.python_implementation() == 'PyPy'
_IS_JYTHON = platform.python_implementation() == 'Jython'
_GC_UNRELIABLE = _IS_PYPY or _IS_JYTHON

_MB = 1024 * 1024


@runtime_checkable
class Collector(Protocol):
    """Strategy for an explicit collection primitive."""

    available: bool

    def collect(self) -> None:
        ...


class GcCollector:
    """Full collection of every generation through the ``gc`` module."""

    available = True

    def collect(self) -> None:
        gc.collect()


class NullCollector:
    """Stand-in when manual collection is unavailable or disabled."""

    available = False

    def collect(self) -> None:
        return None


def default_collector(enabled: bool = True) -> Collector:
    """Pick the collector for this runtime."""
    if not enabled or _GC_UNRELIABLE:
        return NullCollector()
    return GcCollector()


class CollectionScheduler:
    """
    Explicit collection requests with a cooldown.

    ``request_gc()`` always collects when a primitive is available;
    ``request_gc_if_needed()`` collects only when ``cooldown_s`` has passed
    since the last collection. The cooldown clock starts at construction.
    """

    def __init__(self,
                 collector: Optional[Collector] = None,
                 heap_reader: Optional[Callable[[], int]] = None,
                 cooldown_s: float = 300.0,
                 clock: Callable[[], float] = time.time) -> None:
        self.collector = collector if collector is not None else default_collector()
        if heap_reader is None:
            from ..sampling import detect_provider
            heap_reader = detect_provider().get_heap_used_bytes
        self._heap_reader = heap_reader
        self.cooldown_s = cooldown_s
        self._clock = clock
        self._lock = threading.Lock()
        self.last_gc = clock()
        self.collections = 0
        self._unavailable_logged = False

    @property
    def available(self) -> bool:
        return bool(self.collector.available)

    def seconds_until_due(self) -> float:
        return max(0.0, self.cooldown_s - (self._clock() - self.last_gc))

    def request_gc(self) -> CollectionResult:
        """Collect now and report how much heap the collection released."""
        with self._lock:
            return self._collect_locked()

    def request_gc_if_needed(self) -> CollectionResult:
        """Collect only if the cooldown since the last collection has elapsed."""
        with self._lock:
            if self._clock() - self.last_gc < self.cooldown_s:
                return CollectionResult.skipped()
            return self._collect_locked()

    def _collect_locked(self) -> CollectionResult:
        # Caller holds self._lock
        if not self.available:
            if not self._unavailable_logged:
                _logger.warning("Manual GC not available in this runtime, collection requests are no-ops")
                self._unavailable_logged = True
            return CollectionResult.unavailable()

        before = self._heap_reader()
        self.collector.collect()
        after = self._heap_reader()
        self.last_gc = self._clock()
        self.collections += 1

        result = CollectionResult.collected(before, after)
        _logger.info(f"GC completed: freed {result.freed / _MB:.2f}MB")
        return result

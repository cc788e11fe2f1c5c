#=============================================================================
# File        : resguard/sampling.py
# Project     : ResGuard v1.0
# Component   : Sampling - Process Memory Snapshots Over Time
# Description : Periodic process-memory sampling into a bounded window
#               • Cross-platform memory measurement via psutil
#               • Fallback mechanisms for systems without psutil
#               • Bounded sample history (oldest dropped first)
#               • Leak check on every sampling tick
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, psutil, tracemalloc, threading
# Standards   : PEP 8, Type Hints, Cross-platform Compatibility
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: os, time, threading, tracemalloc, psutil, resource (fallback)
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_sampling.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import os
import sys
import time
import logging
import threading
import tracemalloc
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Callable, Deque, Dict, Optional, Protocol, Tuple, runtime_checkable

from .report import LeakSignal
from .detectors.trend import TrendAnalyzer
from .scheduler import RepeatingScheduler, ScheduledJob

_logger = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass(frozen=True)
class MemorySample:
    """One process-memory snapshot; all sizes in bytes."""
    timestamp: float
    heap_used: int
    heap_total: int
    external: int
    rss: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@runtime_checkable
class MemoryProvider(Protocol):
    """Protocol for memory measurement providers (bytes)."""

    def get_rss_bytes(self) -> int:
        """Resident set size."""
        ...

    def get_heap_used_bytes(self) -> int:
        """Memory the interpreter is actively using."""
        ...

    def get_heap_total_bytes(self) -> int:
        """Memory reserved for the process."""
        ...

    def get_external_bytes(self) -> int:
        """Memory outside the process heap (shared mappings)."""
        ...


def _traced_bytes() -> Optional[int]:
    """Bytes currently traced by tracemalloc, if tracing is active."""
    if not tracemalloc.is_tracing():
        return None
    current, _peak = tracemalloc.get_traced_memory()
    return current


def _heap_source() -> str:
    """Which quantity heap_used currently reports."""
    return "tracemalloc" if tracemalloc.is_tracing() else "rss"


class PsutilProvider:
    """Memory provider using psutil (preferred)."""

    def __init__(self) -> None:
        try:
            import psutil
            self._psutil = psutil
            self._process = psutil.Process(os.getpid())
        except ImportError:
            raise ImportError("psutil not available")

    def get_rss_bytes(self) -> int:
        try:
            return int(self._process.memory_info().rss)
        except Exception:
            return 0

    @property
    def heap_source(self) -> str:
        return _heap_source()

    def get_heap_used_bytes(self) -> int:
        traced = _traced_bytes()
        return traced if traced is not None else self.get_rss_bytes()

    def get_heap_total_bytes(self) -> int:
        try:
            return int(self._process.memory_info().vms)
        except Exception:
            return 0

    def get_external_bytes(self) -> int:
        try:
            # Only some platforms report shared memory
            return int(getattr(self._process.memory_info(), 'shared', 0))
        except Exception:
            return 0


class ResourceProvider:
    """Fallback memory provider using resource module (peak RSS only)."""

    def get_rss_bytes(self) -> int:
        try:
            import resource
            maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
            # ru_maxrss is bytes on macOS, KB elsewhere
            return int(maxrss) if sys.platform == 'darwin' else int(maxrss) * 1024
        except Exception:
            return 0

    @property
    def heap_source(self) -> str:
        return _heap_source()

    def get_heap_used_bytes(self) -> int:
        traced = _traced_bytes()
        return traced if traced is not None else self.get_rss_bytes()

    def get_heap_total_bytes(self) -> int:
        return self.get_rss_bytes()

    def get_external_bytes(self) -> int:
        return 0


class NullProvider:
    """Null memory provider when no measurement is available."""

    heap_source = "none"

    def get_rss_bytes(self) -> int:
        return 0

    def get_heap_used_bytes(self) -> int:
        return 0

    def get_heap_total_bytes(self) -> int:
        return 0

    def get_external_bytes(self) -> int:
        return 0


def detect_provider() -> MemoryProvider:
    """Auto-detect the best available memory provider."""
    try:
        return PsutilProvider()
    except ImportError:
        _logger.warning("psutil not available, falling back to resource-based memory measurement")

    try:
        provider = ResourceProvider()
        if provider.get_rss_bytes() > 0:
            return provider
    except Exception:
        pass

    return NullProvider()


class MemorySampler:
    """
    Periodic process-memory sampler.

    Keeps at most ``max_samples`` snapshots, oldest dropped first. Every
    tick appends one sample and runs the leak check over the window.
    Ticks run on a ``RepeatingScheduler`` thread; pass the coordinator's
    scheduler so sampling shares its single execution context.

    Providers may expose a ``heap_source`` attribute naming what
    ``heap_used`` measures. When it changes (tracemalloc started or stopped)
    the history is discarded so the leak check never compares two
    different quantities.
    """

    def __init__(self,
                 provider: Optional[MemoryProvider] = None,
                 max_samples: int = 100,
                 interval_s: float = 60.0,
                 analyzer: Optional[TrendAnalyzer] = None,
                 scheduler: Optional[RepeatingScheduler] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self._provider = provider if provider is not None else detect_provider()
        self.max_samples = max_samples
        self.interval_s = interval_s
        self.analyzer = analyzer if analyzer is not None else TrendAnalyzer()
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler if scheduler is not None else RepeatingScheduler("ResGuard-Sampler")
        self._clock = clock
        self._samples: Deque[MemorySample] = deque(maxlen=max_samples)
        self._lock = threading.Lock()
        self._job: Optional[ScheduledJob] = None
        self._heap_source: Optional[str] = None
        self.last_signal: Optional[LeakSignal] = None

    # --------- Snapshots ---------

    def get_memory_usage(self) -> MemorySample:
        """Synchronous snapshot of the current process memory."""
        p = self._provider
        return MemorySample(
            timestamp=self._clock(),
            heap_used=p.get_heap_used_bytes(),
            heap_total=p.get_heap_total_bytes(),
            external=p.get_external_bytes(),
            rss=p.get_rss_bytes(),
        )

    def record_sample(self) -> MemorySample:
        """Take a snapshot and append it to the bounded history."""
        source = getattr(self._provider, "heap_source", None)
        sample = self.get_memory_usage()
        with self._lock:
            if self._samples and source != self._heap_source:
                _logger.warning(f"Heap source changed from {self._heap_source} to {source}, "
                                f"discarding {len(self._samples)} samples")
                self._samples.clear()
            self._heap_source = source
            self._samples.append(sample)
        return sample

    @property
    def samples(self) -> Tuple[MemorySample, ...]:
        with self._lock:
            return tuple(self._samples)

    def is_available(self) -> bool:
        return not isinstance(self._provider, NullProvider)

    def get_provider_type(self) -> str:
        return type(self._provider).__name__

    # --------- Lifecycle ---------

    @property
    def is_running(self) -> bool:
        return self._job is not None

    def start(self, interval_s: Optional[float] = None) -> None:
        """Take one sample now, then one every interval. No-op if running."""
        if self._job is not None:
            return

        if interval_s is not None:
            self.interval_s = interval_s

        self.record_sample()
        self._job = self._scheduler.schedule("memory-sample", self.interval_s, self._tick)
        _logger.info(f"Memory monitoring started (every {self.interval_s}s)")

    def stop(self) -> None:
        """Cancel the periodic tick. Safe if never started or already stopped."""
        job, self._job = self._job, None
        if job is None:
            return

        self._scheduler.cancel(job)
        if self._owns_scheduler:
            self._scheduler.shutdown()
        _logger.info("Memory monitoring stopped")

    def _tick(self) -> None:
        sample = self.record_sample()
        self.check_for_leaks()
        _logger.debug(f"Memory: {sample.heap_used / _MB:.2f}MB heap, {sample.rss / _MB:.2f}MB RSS")

    # --------- Analysis over retained samples ---------

    def check_for_leaks(self) -> LeakSignal:
        signal = self.analyzer.check_for_leaks(self.samples)
        self.last_signal = signal
        if signal.detected:
            _logger.warning(
                f"Potential memory leak detected: {signal.growth_percent:.1f}% growth "
                f"(older avg {signal.older_avg / _MB:.2f}MB, "
                f"recent avg {signal.recent_avg / _MB:.2f}MB, severity {signal.severity.value})"
            )
        return signal

    def get_stats(self) -> Optional[Dict[str, Any]]:
        return self.analyzer.get_stats(self.samples)

#=============================================================================
# File        : resguard/core.py
# Project     : ResGuard v1.0
# Component   : Core Orchestrator - Resource Coordinator
# Description : Lifecycle owner for cache eviction, memory sampling and
#               throttled collection
#               • start()/stop() with a single shared background scheduler
#               • Periodic optimize cycle: eviction -> GC -> leak check
#               • Per-step failure isolation within a cycle
#               • Aggregated stats and status for the host application
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Threading, Cross-Platform
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: config, sampling, report, scheduler, guards, detectors
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_core.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import os
import time
import atexit
import logging
import platform
import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from .config import ResGuardConfig
from .report import CleanupResult, OptimizationCycleResult
from .scheduler import RepeatingScheduler, ScheduledJob
from .sampling import MemoryProvider, MemorySample, MemorySampler, detect_provider
from .guards.cache_guard import AccessTracker, CacheSizeMeter, EvictionPlanner
from .detectors.trend import TrendAnalyzer
from .detectors.collection import CollectionScheduler, Collector, default_collector

T = TypeVar("T")

# Configure safe logging defaults for the whole package
_logger = logging.getLogger(__name__)
_package_logger = logging.getLogger("resguard")
_package_logger.setLevel(logging.WARNING)  # Only WARN/ERROR by default

# Add console handler only if none exists
if not _package_logger.handlers and not logging.getLogger().handlers:
    _console_handler = logging.StreamHandler()
    _console_handler.setLevel(logging.WARNING)
    _formatter = logging.Formatter('[ResGuard] %(levelname)s: %(message)s')
    _console_handler.setFormatter(_formatter)
    _package_logger.addHandler(_console_handler)

# Environment detection
_environment_info = {
    'platform': platform.system(),
    'python_implementation': platform.python_implementation(),
    'python_version': platform.python_version(),
}


class CoordinatorState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ResourceCoordinator:
    """
    Keeps one host process inside its resource bounds.

    Construct it at startup with the cache directory the icon producer
    writes to, call ``start()``, and ``stop()`` at shutdown (or use it as a
    context manager). While running, memory is sampled every
    ``sample_interval_s`` and an optimize cycle runs every
    ``optimize_interval_s``; both run on one background thread, so they
    never interleave. ``optimize()`` can also be called manually at any
    time, running or not.

    The icon producer calls ``record_icon_access(name)`` whenever it serves
    or creates a cached icon so eviction sees real usage rather than file
    modification times.
    """

    def __init__(self,
                 cache_root: Union[str, "os.PathLike[str]", None] = None,
                 config: Optional[ResGuardConfig] = None,
                 *,
                 provider: Optional[MemoryProvider] = None,
                 collector: Optional[Collector] = None,
                 scheduler: Optional[RepeatingScheduler] = None,
                 clock: Callable[[], float] = time.time) -> None:
        config = config or ResGuardConfig()
        if cache_root is not None:
            config = config.merge(cache_root=os.fspath(cache_root))
        if config.cache_root is None:
            raise ValueError("cache_root is required (argument, config or RESGUARD_CACHE_ROOT)")

        self.config = config
        self._clock = clock
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler if scheduler is not None else RepeatingScheduler()
        provider = provider if provider is not None else detect_provider()

        # Cache side
        self.meter = CacheSizeMeter(config.cache_root)
        self.tracker = AccessTracker(clock)
        self.planner = EvictionPlanner(self.meter, self.tracker,
                                       max_cache_bytes=config.max_cache_bytes,
                                       target_fraction=config.target_fraction)

        # Memory side
        self.analyzer = TrendAnalyzer(threshold=config.leak_threshold)
        self.sampler = MemorySampler(provider=provider,
                                     max_samples=config.max_samples,
                                     interval_s=config.sample_interval_s,
                                     analyzer=self.analyzer,
                                     scheduler=self._scheduler,
                                     clock=clock)
        self.collection = CollectionScheduler(
            collector=collector if collector is not None else default_collector(config.enable_manual_gc),
            heap_reader=provider.get_heap_used_bytes,
            cooldown_s=config.gc_cooldown_s,
            clock=clock,
        )

        self._lock = threading.RLock()
        self._state = CoordinatorState.STOPPED
        self._cycle_job: Optional[ScheduledJob] = None
        self._start_time = 0.0
        self._last_cycle_time: Optional[float] = None
        self.last_result: Optional[OptimizationCycleResult] = None
        self._performance_stats = {
            'total_cycles': 0,
            'failed_steps': 0,
            'avg_cycle_duration_ms': 0.0,
        }

    # --------- Lifecycle ---------

    @property
    def state(self) -> CoordinatorState:
        return self._state

    def is_running(self) -> bool:
        return self._state is CoordinatorState.RUNNING

    def start(self) -> None:
        """Start sampling and the periodic optimize cycle. No-op if running."""
        with self._lock:
            if self._state is CoordinatorState.RUNNING:
                _logger.warning("Resource coordinator already running")
                return
            if not self.config.is_enabled():
                _logger.warning("Resource coordinator not started: kill switch is set")
                return

            try:
                self.meter.ensure_root()
            except OSError as e:
                _logger.warning(f"Failed to create cache directory {self.meter.cache_root}: {e}")

            try:
                self.sampler.start()
                self._cycle_job = self._scheduler.schedule(
                    "optimize-cycle", self.config.optimize_interval_s, self._scheduled_optimize)
            except Exception as e:
                _logger.error(f"Failed to start resource coordinator: {e}")
                self._teardown()
                raise

            self._state = CoordinatorState.RUNNING
            self._start_time = self._clock()
            atexit.register(self._stop_at_exit)

        _logger.info(f"Resource coordinator started for {self.config.cache_root}")

    def stop(self) -> None:
        """Stop sampling and the optimize cycle. Idempotent."""
        with self._lock:
            if self._state is CoordinatorState.STOPPED:
                return
            self._state = CoordinatorState.STOPPED
            atexit.unregister(self._stop_at_exit)

        # Outside the lock: a scheduled cycle may be waiting on it
        self._teardown()
        _logger.info("Resource coordinator stopped")

    def _teardown(self) -> None:
        job, self._cycle_job = self._cycle_job, None
        self._scheduler.cancel(job)
        self.sampler.stop()
        if self._owns_scheduler:
            self._scheduler.shutdown()

    def _stop_at_exit(self) -> None:
        try:
            self.stop()
        except Exception:
            pass  # Ignore errors during interpreter shutdown

    def __enter__(self) -> "ResourceCoordinator":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # --------- Optimize cycle ---------

    def _scheduled_optimize(self) -> None:
        if self._state is not CoordinatorState.RUNNING:
            return
        result = self.optimize()
        if not result.ok:
            _logger.warning(f"Optimize cycle finished with errors: {result.errors}")

    def optimize(self) -> OptimizationCycleResult:
        """
        Run one optimize cycle: cache eviction, then a collection if the
        cooldown allows, then a leak check. A failing step is logged and
        reported in ``errors`` without stopping the remaining steps.
        """
        with self._lock:
            _logger.debug("Running optimize cycle...")
            start_time = time.perf_counter()
            errors: Dict[str, str] = {}

            cache_result = self._run_step("cache", self.planner.cleanup, errors)
            gc_result = self._run_step("gc", self.collection.request_gc_if_needed, errors)
            leak_result = self._run_step("leak", self.sampler.check_for_leaks, errors)

            duration_ms = (time.perf_counter() - start_time) * 1000
            result = OptimizationCycleResult(
                cache=cache_result,
                gc=gc_result,
                leak=leak_result,
                errors=errors,
                duration_ms=duration_ms,
                timestamp=self._clock(),
            )

            # Running average of cycle duration
            stats = self._performance_stats
            stats['total_cycles'] += 1
            stats['failed_steps'] += len(errors)
            total = stats['total_cycles']
            stats['avg_cycle_duration_ms'] = (
                (stats['avg_cycle_duration_ms'] * (total - 1) + duration_ms) / total
            )

            self._last_cycle_time = result.timestamp
            self.last_result = result
            return result

    @staticmethod
    def _run_step(name: str, step: Callable[[], T], errors: Dict[str, str]) -> Optional[T]:
        try:
            return step()
        except Exception as e:
            _logger.error(f"Optimize step '{name}' failed: {e}")
            errors[name] = f"{type(e).__name__}: {e}"
            return None

    # --------- Host-facing hooks ---------

    def record_icon_access(self, name: str) -> None:
        """Notification hook for the icon producer: ``name`` was just used."""
        self.tracker.record_access(name)

    def clear_cache(self) -> CleanupResult:
        """Delete every cached entry and forget all access records."""
        with self._lock:
            return self.planner.clear_all()

    def get_memory_usage(self) -> MemorySample:
        return self.sampler.get_memory_usage()

    # --------- Reporting ---------

    def get_stats(self) -> Dict[str, Any]:
        """Memory stats merged with current cache size for external reporting."""
        entries = self.meter.list_entries()
        return {
            'memory': self.sampler.get_stats(),
            'cache': {
                'size': sum(e.size_bytes for e in entries),
                'max_size': self.config.max_cache_bytes,
                'entries': len(entries),
                'tracked': len(self.tracker),
            },
            'state': self._state.value,
            'cycles': self._performance_stats['total_cycles'],
        }

    def get_status(self) -> Dict[str, Any]:
        """Lifecycle, timing and configuration summary."""
        with self._lock:
            now = self._clock()
            running = self._state is CoordinatorState.RUNNING
            return {
                'state': self._state.value,
                'uptime_seconds': now - self._start_time if running else 0,
                'last_cycle_age_seconds': (now - self._last_cycle_time
                                           if self._last_cycle_time is not None else None),
                'performance_stats': self._performance_stats.copy(),
                'gc_available': self.collection.available,
                'gc_collections': self.collection.collections,
                'memory_provider': self.sampler.get_provider_type(),
                'samples': len(self.sampler.samples),
                'scheduler_active': self._scheduler.is_running,
                'environment_info': _environment_info.copy(),
                'configuration': {
                    'cache_root': self.config.cache_root,
                    'max_cache_bytes': self.config.max_cache_bytes,
                    'sample_interval_s': self.config.sample_interval_s,
                    'optimize_interval_s': self.config.optimize_interval_s,
                    'leak_threshold': self.config.leak_threshold,
                    'gc_cooldown_s': self.config.gc_cooldown_s,
                    'max_samples': self.config.max_samples,
                    'target_fraction': self.config.target_fraction,
                },
            }


__all__ = [
    'CoordinatorState',
    'ResourceCoordinator',
]

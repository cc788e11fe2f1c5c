#=============================================================================
# File        : resguard/__init__.py
# Project     : ResGuard v1.0 - Open Source
# Component   : Package Initialization
# Description : Resource bounding for long-running desktop host processes
#               • LRU eviction for a bounded on-disk icon cache
#               • Periodic memory sampling with leak-trend signals
#               • Cooldown-gated explicit garbage collection
#               • Single coordinator with start/stop lifecycle
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Threading, psutil
# Standards   : PEP 8, Type Hints, Dataclasses
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: typing, threading, psutil
# SHA-256     : [Updated by CI/CD]
# Testing     : tests/
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. Released under MIT License.
#=============================================================================

"""
ResGuard - Resource bounding for long-running host processes

Quick Start:
    from resguard import ResourceCoordinator

    coordinator = ResourceCoordinator("/path/to/icon-cache")
    coordinator.start()

    # icon producer, whenever it serves or writes an icon:
    coordinator.record_icon_access("a1b2c3.png")

    stats = coordinator.get_stats()
    print(f"Cache: {stats['cache']['size']} / {stats['cache']['max_size']} bytes")

    coordinator.stop()
"""

from .core import (
    CoordinatorState,
    ResourceCoordinator
)

from .config import ResGuardConfig

from .report import (
    CleanupResult,
    CollectionResult,
    CollectionStatus,
    LeakSignal,
    OptimizationCycleResult,
    SeverityLevel
)

from .guards.cache_guard import (
    CacheEntry,
    CacheSizeMeter,
    AccessTracker,
    EvictionPlanner
)

from .sampling import (
    MemorySample,
    MemorySampler,
    MemoryProvider
)

from .detectors.trend import TrendAnalyzer
from .detectors.collection import (
    CollectionScheduler,
    GcCollector,
    NullCollector
)

from .scheduler import RepeatingScheduler

__version__ = "1.0.0"
__author__ = "Kyle Clouthier"
__license__ = "MIT"
__description__ = "Resource bounding for long-running host processes"

__all__ = [
    # Coordinator
    "ResourceCoordinator",
    "CoordinatorState",

    # Configuration
    "ResGuardConfig",

    # Results
    "CleanupResult",
    "CollectionResult",
    "CollectionStatus",
    "LeakSignal",
    "OptimizationCycleResult",
    "SeverityLevel",

    # Components
    "CacheEntry",
    "CacheSizeMeter",
    "AccessTracker",
    "EvictionPlanner",
    "MemorySample",
    "MemorySampler",
    "MemoryProvider",
    "TrendAnalyzer",
    "CollectionScheduler",
    "GcCollector",
    "NullCollector",
    "RepeatingScheduler",

    # Metadata
    "__version__",
    "__author__",
    "__license__"
]

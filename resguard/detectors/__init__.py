#=============================================================================
# File        : resguard/detectors/__init__.py
# Project     : ResGuard v1.0
# Component   : Detectors Package - Memory Trend and Collection Exports
# Description : Package initialization for memory-side detectors
#               • Rolling-window heap growth detection
#               • Cooldown-gated explicit collection
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, GC Analysis, Statistical Detection
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: trend, collection
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_trend.py, tests/test_collection.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from .trend import TrendAnalyzer

from .collection import (
    CollectionScheduler,
    Collector,
    GcCollector,
    NullCollector,
    default_collector
)

__all__ = [
    # Trend detector exports
    "TrendAnalyzer",

    # Collection exports
    "CollectionScheduler",
    "Collector",
    "GcCollector",
    "NullCollector",
    "default_collector"
]

#=============================================================================
# File        : resguard/guards/__init__.py
# Project     : ResGuard v1.0
# Component   : Guards Package - Bounded Resource Guard Exports
# Description : Package initialization for on-disk resource guards
#               • Cache directory size measurement
#               • Access recency tracking and LRU eviction
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Filesystem
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: cache_guard
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_cache_guard.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from .cache_guard import (
    CacheEntry,
    CacheSizeMeter,
    AccessTracker,
    EvictionPlanner
)

__all__ = [
    "CacheEntry",
    "CacheSizeMeter",
    "AccessTracker",
    "EvictionPlanner"
]

#=============================================================================
# File        : resguard/guards/cache_guard.py
# Project     : ResGuard v1.0
# Component   : Cache Guard - Bounded On-Disk Cache with LRU Eviction
# Description : Keeps the icon cache directory under its byte budget
#               • Directory size measurement tolerant of stat failures
#               • In-memory access recency tracking
#               • LRU eviction down to a target fraction of the budget
#               • Full cache clearing
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Filesystem, Threading
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: os, stat, threading, time, report
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_cache_guard.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import os
import stat
import time
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from ..report import CleanupResult

_logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
AccessLookup = Callable[[str], Optional[float]]

_MB = 1024 * 1024


@dataclass(frozen=True)
class CacheEntry:
    """One file under the cache root, with its effective last access time."""
    name: str
    path: str
    size_bytes: int
    access_time: float


class CacheSizeMeter:
    """Measures the files directly under a cache root."""

    def __init__(self, cache_root: PathLike) -> None:
        self.cache_root = os.fspath(cache_root)

    def exists(self) -> bool:
        return os.path.isdir(self.cache_root)

    def ensure_root(self) -> None:
        """Create the cache root if it is missing."""
        os.makedirs(self.cache_root, exist_ok=True)

    def list_entries(self, access_lookup: Optional[AccessLookup] = None) -> List[CacheEntry]:
        """
        List every regular file under the root.

        ``access_lookup`` maps a file name to a recorded access time; files
        without a record fall back to their modification time. Files whose
        stat fails are logged and left out.
        """
        try:
            dir_entries = list(os.scandir(self.cache_root))
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            _logger.warning(f"Failed to list cache directory {self.cache_root}: {e}")
            return []

        entries: List[CacheEntry] = []
        for dir_entry in dir_entries:
            try:
                st = dir_entry.stat()
            except OSError as e:
                _logger.warning(f"Failed to stat cache file {dir_entry.path}: {e}")
                continue
            if not stat.S_ISREG(st.st_mode):
                continue

            recorded = access_lookup(dir_entry.name) if access_lookup else None
            entries.append(CacheEntry(
                name=dir_entry.name,
                path=dir_entry.path,
                size_bytes=st.st_size,
                access_time=recorded if recorded is not None else st.st_mtime,
            ))
        return entries

    def get_cache_size(self) -> int:
        """Total bytes under the root; 0 when the root does not exist."""
        return sum(entry.size_bytes for entry in self.list_entries())


class AccessTracker:
    """
    Process-lifetime map of cache entry name -> last access time.

    Not persisted: after a restart eviction falls back to file mtimes.
    Owners must ``forget()`` entries they delete.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: Dict[str, float] = {}
        self._lock = threading.Lock()

    def record_access(self, name: str) -> None:
        with self._lock:
            self._records[name] = self._clock()

    def get(self, name: str) -> Optional[float]:
        with self._lock:
            return self._records.get(name)

    def forget(self, name: str) -> None:
        with self._lock:
            self._records.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._records)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class EvictionPlanner:
    """
    LRU eviction policy for the cache directory.

    When the cache grows past ``max_cache_bytes`` the least recently used
    entries are deleted until the cache is at or below
    ``max_cache_bytes * target_fraction``, leaving headroom so the next
    write does not immediately trigger another pass.
    """

    def __init__(self, meter: CacheSizeMeter, tracker: AccessTracker,
                 max_cache_bytes: int = 50 * _MB, target_fraction: float = 0.8) -> None:
        self.meter = meter
        self.tracker = tracker
        self.max_cache_bytes = max_cache_bytes
        self.target_fraction = target_fraction

    @property
    def target_bytes(self) -> float:
        return self.max_cache_bytes * self.target_fraction

    def plan(self) -> List[CacheEntry]:
        """All entries in eviction order: oldest effective access first."""
        entries = self.meter.list_entries(self.tracker.get)
        entries.sort(key=lambda e: (e.access_time, e.name))
        return entries

    def cleanup(self) -> CleanupResult:
        """Evict oldest entries if the cache exceeds its budget."""
        candidates = self.plan()
        current_size = sum(e.size_bytes for e in candidates)

        if current_size <= self.max_cache_bytes:
            return CleanupResult()

        _logger.info(f"Cache size ({current_size / _MB:.2f}MB) exceeds limit "
                     f"({self.max_cache_bytes / _MB:.2f}MB), cleaning up...")

        removed = 0
        freed_bytes = 0
        remaining = current_size
        target = self.target_bytes

        for entry in candidates:
            if remaining <= target:
                break

            try:
                os.remove(entry.path)
            except FileNotFoundError:
                # Deleted by someone else since listing; it no longer counts
                remaining -= entry.size_bytes
                self.tracker.forget(entry.name)
                _logger.debug(f"Cache file vanished before eviction: {entry.path}")
                continue
            except OSError as e:
                _logger.warning(f"Failed to delete cache file {entry.path}: {e}")
                continue

            remaining -= entry.size_bytes
            freed_bytes += entry.size_bytes
            removed += 1
            self.tracker.forget(entry.name)

        _logger.info(f"Cache cleanup complete: removed {removed} files, "
                     f"freed {freed_bytes / _MB:.2f}MB")
        return CleanupResult(removed=removed, freed_bytes=freed_bytes)

    def clear_all(self) -> CleanupResult:
        """Delete every entry regardless of size and drop all access records."""
        removed = 0
        freed_bytes = 0

        for entry in self.meter.list_entries():
            try:
                os.remove(entry.path)
            except FileNotFoundError:
                continue
            except OSError as e:
                _logger.warning(f"Failed to delete cache file {entry.path}: {e}")
                continue
            freed_bytes += entry.size_bytes
            removed += 1

        self.tracker.clear()

        _logger.info(f"Cache cleared: removed {removed} files, freed {freed_bytes / _MB:.2f}MB")
        return CleanupResult(removed=removed, freed_bytes=freed_bytes)

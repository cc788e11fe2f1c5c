#=============================================================================
# File        : resguard/report.py
# Project     : ResGuard v1.0
# Component   : Report - Result Data Structures
# Description : Immutable return values of one ResGuard invocation
#               • CleanupResult for cache eviction passes
#               • CollectionResult for explicit GC requests
#               • LeakSignal with severity inference
#               • OptimizationCycleResult bundling one optimize cycle
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Dataclasses, JSON
# Standards   : PEP 8, Type Hints, Immutable Data Structures
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: json, time, dataclasses, enum, typing
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_report.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Any
from enum import Enum


# Severity ranking for proper comparison
SEVERITY_RANK = {
    'low': 1,
    'medium': 2,
    'high': 3,
    'critical': 4
}


class SeverityLevel(Enum):
    """Severity levels for leak signals."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.value]

    def __lt__(self, other: "SeverityLevel") -> bool:
        return self.rank < other.rank

    def __le__(self, other: "SeverityLevel") -> bool:
        return self.rank <= other.rank

    def __gt__(self, other: "SeverityLevel") -> bool:
        return self.rank > other.rank

    def __ge__(self, other: "SeverityLevel") -> bool:
        return self.rank >= other.rank


class CollectionStatus(Enum):
    """Outcome of an explicit collection request."""
    COLLECTED = "collected"
    UNAVAILABLE = "unavailable"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CleanupResult:
    """Outcome of one eviction pass over the cache directory."""
    removed: int = 0
    freed_bytes: int = 0

    def __post_init__(self):
        if self.removed < 0 or self.freed_bytes < 0:
            raise ValueError("CleanupResult counters cannot be negative")

    @property
    def freed_mb(self) -> float:
        return self.freed_bytes / (1024 * 1024)

    def to_dict(self) -> Dict[str, Any]:
        return {'removed': self.removed, 'freed_bytes': self.freed_bytes}


@dataclass(frozen=True)
class CollectionResult:
    """
    Outcome of an explicit collection request.

    ``freed`` may be negative: the heap can grow between the two
    measurements taken around the collection.
    """
    status: CollectionStatus
    freed: int = 0
    before: int = 0
    after: int = 0
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def collected(cls, before: int, after: int) -> "CollectionResult":
        return cls(CollectionStatus.COLLECTED, freed=before - after, before=before, after=after)

    @classmethod
    def unavailable(cls) -> "CollectionResult":
        return cls(CollectionStatus.UNAVAILABLE)

    @classmethod
    def skipped(cls) -> "CollectionResult":
        return cls(CollectionStatus.SKIPPED)

    @property
    def ran(self) -> bool:
        return self.status is CollectionStatus.COLLECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'freed': self.freed,
            'before': self.before,
            'after': self.after,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class LeakSignal:
    """
    Heuristic indication of heap growth between two adjacent sample windows.

    Not a proof of leakage: a legitimately growing working set trips it too.
    """
    detected: bool
    growth_ratio: float = 0.0
    older_avg: float = 0.0
    recent_avg: float = 0.0
    threshold: float = 1.5
    severity: Optional[SeverityLevel] = None

    def __post_init__(self):
        # Auto-assign severity from growth unless explicitly set
        if self.severity is None:
            object.__setattr__(self, 'severity', self._infer_severity())

    @classmethod
    def none(cls, threshold: float = 1.5) -> "LeakSignal":
        """The no-signal value: insufficient data or growth below threshold."""
        return cls(detected=False, threshold=threshold)

    def _infer_severity(self) -> SeverityLevel:
        """Infer severity from growth relative to the detection threshold."""
        if not self.detected:
            return SeverityLevel.LOW

        # Growth beyond 1.0 compared with the threshold's growth margin
        margin = self.threshold - 1.0
        relative = (self.growth_ratio - 1.0) / margin if margin > 0 else math.inf

        if relative >= 3:
            return SeverityLevel.CRITICAL
        elif relative >= 2:
            return SeverityLevel.HIGH
        else:
            return SeverityLevel.MEDIUM

    @property
    def growth_percent(self) -> float:
        return (self.growth_ratio - 1.0) * 100 if self.detected else 0.0

    def __bool__(self) -> bool:
        return self.detected

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detected': self.detected,
            'growth_ratio': self.growth_ratio,
            'older_avg': self.older_avg,
            'recent_avg': self.recent_avg,
            'threshold': self.threshold,
            'severity': self.severity.value,
        }


@dataclass(frozen=True)
class OptimizationCycleResult:
    """
    Everything one optimize cycle produced.

    A step that raised leaves its slot as ``None`` and its message in
    ``errors`` keyed by step name ("cache", "gc", "leak").
    """
    cache: Optional[CleanupResult] = None
    gc: Optional[CollectionResult] = None
    leak: Optional[LeakSignal] = None
    errors: Dict[str, str] = field(default_factory=dict)
    duration_ms: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cache': self.cache.to_dict() if self.cache is not None else None,
            'gc': self.gc.to_dict() if self.gc is not None else None,
            'leak': self.leak.to_dict() if self.leak is not None else None,
            'errors': dict(self.errors),
            'duration_ms': self.duration_ms,
            'timestamp': self.timestamp,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

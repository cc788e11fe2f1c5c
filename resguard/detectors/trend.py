#=============================================================================
# File        : resguard/detectors/trend.py
# Project     : ResGuard v1.0
# Component   : Trend Detector - Rolling-Window Heap Growth Detection
# Description : Heuristic leak detection over the retained memory samples
#               • Adjacent-window mean comparison (older vs recent)
#               • Cold-start guard before any signal is produced
#               • Current / average / peak reporting view
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Technology  : Python 3.8+, Statistical Analysis
# Standards   : PEP 8, Type Hints, Production Safety
# Created     : 2025-09-02
# Modified    : 2025-09-02 (Initial creation)
# Dependencies: math, statistics, report
# SHA-256     : [PLACEHOLDER - Updated by CI/CD]
# Testing     : tests/test_trend.py
# License     : MIT License
# Copyright   : © 2025 Kyle Clouthier. All rights reserved.
#=============================================================================

from __future__ import annotations

import math
import statistics
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

from ..report import LeakSignal

if TYPE_CHECKING:
    from ..sampling import MemorySample

# Window configuration
_trend_config = {
    'recent_window': 5,    # Most recent samples
    'older_window': 5,     # Samples immediately preceding the recent window
    'min_samples': 10,     # No signal before this many samples are retained
}


class TrendAnalyzer:
    """
    Compares the mean heap usage of the newest samples against the window
    just before them. A ratio above ``threshold`` is a leak signal.

    O(1) per check over a bounded buffer; sensitive to the window sizes and
    threshold, so treat a signal as a prompt to investigate.
    """

    def __init__(self,
                 threshold: float = 1.5,
                 recent_window: int = _trend_config['recent_window'],
                 older_window: int = _trend_config['older_window'],
                 min_samples: int = _trend_config['min_samples']) -> None:
        if threshold <= 1.0:
            raise ValueError(f"threshold must be > 1.0, got {threshold}")
        if recent_window < 1 or older_window < 1:
            raise ValueError("window sizes must be positive")

        self.threshold = threshold
        self.recent_window = recent_window
        self.older_window = older_window
        self.min_samples = max(min_samples, recent_window + older_window)

    def check_for_leaks(self, samples: Sequence["MemorySample"]) -> LeakSignal:
        if len(samples) < self.min_samples:
            return LeakSignal.none(self.threshold)

        window = list(samples)[-(self.recent_window + self.older_window):]
        older = window[:self.older_window]
        recent = window[self.older_window:]

        older_avg = statistics.fmean(s.heap_used for s in older)
        recent_avg = statistics.fmean(s.heap_used for s in recent)

        if older_avg > 0:
            growth_ratio = recent_avg / older_avg
        else:
            growth_ratio = math.inf if recent_avg > 0 else 1.0

        if growth_ratio > self.threshold:
            return LeakSignal(
                detected=True,
                growth_ratio=growth_ratio,
                older_avg=older_avg,
                recent_avg=recent_avg,
                threshold=self.threshold,
            )
        return LeakSignal.none(self.threshold)

    def get_stats(self, samples: Sequence["MemorySample"]) -> Optional[Dict[str, Any]]:
        """Current / average / peak of heap_used and rss; ``None`` when empty."""
        if not samples:
            return None

        latest = samples[-1]
        heap_values = [s.heap_used for s in samples]
        rss_values = [s.rss for s in samples]

        return {
            'current': {
                'heap_used': latest.heap_used,
                'heap_total': latest.heap_total,
                'rss': latest.rss,
                'external': latest.external,
            },
            'average': {
                'heap_used': statistics.fmean(heap_values),
                'rss': statistics.fmean(rss_values),
            },
            'peak': {
                'heap_used': max(heap_values),
                'rss': max(rss_values),
            },
            'measurements': len(samples),
        }

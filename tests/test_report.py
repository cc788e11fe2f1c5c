#=============================================================================
# File        : tests/test_report.py
# Project     : ResGuard v1.0
# Component   : Result Types Test Suite
# Description : Cleanup, collection, leak and cycle result serialization
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import sys
import json
from pathlib import Path

import pytest

# Add resguard to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))

from resguard.report import (
    CleanupResult,
    CollectionResult,
    CollectionStatus,
    LeakSignal,
    OptimizationCycleResult,
    SeverityLevel,
)


class TestCleanupResult:

    def test_defaults_and_mb(self):
        assert CleanupResult() == CleanupResult(removed=0, freed_bytes=0)
        assert CleanupResult(removed=2, freed_bytes=3 * 1024 * 1024).freed_mb == pytest.approx(3.0)

    def test_rejects_negative_counters(self):
        with pytest.raises(ValueError):
            CleanupResult(removed=-1)
        with pytest.raises(ValueError):
            CleanupResult(freed_bytes=-5)


class TestCollectionResult:

    def test_collected_computes_freed(self):
        result = CollectionResult.collected(before=1000, after=400)
        assert result.ran
        assert result.freed == 600

    def test_freed_can_be_negative(self):
        assert CollectionResult.collected(before=100, after=150).freed == -50

    def test_unavailable_and_skipped(self):
        assert CollectionResult.unavailable().status is CollectionStatus.UNAVAILABLE
        assert CollectionResult.skipped().status is CollectionStatus.SKIPPED
        assert not CollectionResult.skipped().ran


class TestLeakSignal:

    def test_none_is_falsy(self):
        signal = LeakSignal.none(2.0)
        assert not signal
        assert signal.threshold == 2.0
        assert signal.growth_percent == 0.0
        assert signal.severity is SeverityLevel.LOW

    def test_severity_ordering(self):
        assert SeverityLevel.LOW < SeverityLevel.MEDIUM < SeverityLevel.HIGH < SeverityLevel.CRITICAL
        assert SeverityLevel.CRITICAL >= SeverityLevel.HIGH

    def test_explicit_severity_is_kept(self):
        signal = LeakSignal(detected=True, growth_ratio=1.6, severity=SeverityLevel.CRITICAL)
        assert signal.severity is SeverityLevel.CRITICAL

    def test_explicit_low_severity_is_kept(self):
        signal = LeakSignal(detected=True, growth_ratio=4.0, severity=SeverityLevel.LOW)
        assert signal.severity is SeverityLevel.LOW

    def test_severity_inferred_when_unset(self):
        signal = LeakSignal(detected=True, growth_ratio=4.0)
        assert signal.severity is SeverityLevel.CRITICAL
        assert signal.to_dict()['severity'] == 'critical'


class TestOptimizationCycleResult:

    def test_ok_without_errors(self):
        assert OptimizationCycleResult().ok
        assert not OptimizationCycleResult(errors={'cache': 'OSError: boom'}).ok

    def test_to_dict_keeps_undetected_leak(self):
        result = OptimizationCycleResult(
            cache=CleanupResult(1, 10),
            gc=CollectionResult.skipped(),
            leak=LeakSignal.none(),
        )
        data = result.to_dict()

        assert data['cache'] == {'removed': 1, 'freed_bytes': 10}
        assert data['gc']['status'] == 'skipped'
        assert data['leak'] is not None
        assert data['leak']['detected'] is False

    def test_failed_step_serializes_as_none(self):
        result = OptimizationCycleResult(errors={'gc': 'RuntimeError: nope'})
        data = json.loads(result.to_json())

        assert data['gc'] is None
        assert data['errors'] == {'gc': 'RuntimeError: nope'}

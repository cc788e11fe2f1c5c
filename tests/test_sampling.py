#=============================================================================
# File        : tests/test_sampling.py
# Project     : ResGuard v1.0
# Component   : Memory Sampler Test Suite
# Description : Providers, bounded sample history and periodic sampling
# Author      : Kyle Clouthier
# Version     : 1.0.0
# Created     : 2025-09-02
#=============================================================================

import sys
import time
import logging
import tracemalloc
from pathlib import Path

import pytest

# Add resguard to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent))

from resguard.sampling import (
    MemoryProvider,
    MemorySample,
    MemorySampler,
    NullProvider,
    PsutilProvider,
    detect_provider,
)

MB = 1024 * 1024


class FakeProvider:
    """Scripted heap readings; every other figure derived from heap."""

    def __init__(self, heaps=None, heap=10 * MB):
        self.heaps = list(heaps or [])
        self.heap = heap

    def get_rss_bytes(self):
        return self.heap * 2

    def get_heap_used_bytes(self):
        if self.heaps:
            self.heap = self.heaps.pop(0)
        return self.heap

    def get_heap_total_bytes(self):
        return self.heap * 3

    def get_external_bytes(self):
        return 1024


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return self.now


def wait_for(predicate, timeout=5.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def sampler():
    s = MemorySampler(provider=FakeProvider(), clock=FakeClock())
    yield s
    s.stop()


class TestProviders:

    def test_detects_psutil(self):
        provider = detect_provider()
        assert isinstance(provider, PsutilProvider)
        assert isinstance(provider, MemoryProvider)

    def test_psutil_provider_reports_process_memory(self):
        provider = PsutilProvider()
        assert provider.get_rss_bytes() > 0
        assert provider.get_heap_total_bytes() > 0
        assert provider.get_external_bytes() >= 0

    def test_heap_falls_back_to_rss(self):
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already active")
        provider = PsutilProvider()
        assert provider.get_heap_used_bytes() > 0

    def test_heap_uses_tracemalloc_when_tracing(self):
        was_tracing = tracemalloc.is_tracing()
        if not was_tracing:
            tracemalloc.start()
        try:
            _keep = [bytes(1024) for _ in range(100)]
            provider = PsutilProvider()
            heap = provider.get_heap_used_bytes()
            assert 0 < heap < provider.get_rss_bytes()
        finally:
            if not was_tracing:
                tracemalloc.stop()

    def test_null_provider(self):
        s = MemorySampler(provider=NullProvider())
        sample = s.get_memory_usage()

        assert not s.is_available()
        assert s.get_provider_type() == "NullProvider"
        assert (sample.heap_used, sample.heap_total, sample.external, sample.rss) == (0, 0, 0, 0)


class TestSnapshots:

    def test_get_memory_usage_fields(self, sampler):
        sample = sampler.get_memory_usage()

        assert isinstance(sample, MemorySample)
        assert sample.heap_used == 10 * MB
        assert sample.rss == 20 * MB
        assert sample.heap_total == 30 * MB
        assert sample.external == 1024
        assert sample.timestamp > 1000

    def test_snapshot_does_not_record(self, sampler):
        sampler.get_memory_usage()
        assert sampler.samples == ()

    def test_real_process_snapshot(self):
        sample = MemorySampler().get_memory_usage()
        assert sample.rss > 0
        assert set(sample.to_dict()) == {'timestamp', 'heap_used', 'heap_total', 'external', 'rss'}

    def test_history_is_bounded(self):
        s = MemorySampler(provider=FakeProvider(heaps=list(range(1, 16))),
                          max_samples=10, clock=FakeClock())
        for _ in range(15):
            s.record_sample()

        heaps = [sample.heap_used for sample in s.samples]
        assert len(heaps) == 10
        assert heaps == list(range(6, 16))

    def test_timestamps_non_decreasing(self, sampler):
        for _ in range(5):
            sampler.record_sample()
        stamps = [sample.timestamp for sample in sampler.samples]
        assert stamps == sorted(stamps)


class TestLeakCheck:

    def test_insufficient_samples(self, sampler):
        for _ in range(9):
            sampler.record_sample()
        assert not sampler.check_for_leaks().detected

    def test_detects_growth_and_warns(self, caplog):
        s = MemorySampler(provider=FakeProvider(heaps=[10 * MB] * 5 + [20 * MB] * 5),
                          clock=FakeClock())
        for _ in range(10):
            s.record_sample()

        with caplog.at_level(logging.WARNING):
            signal = s.check_for_leaks()

        assert signal.detected
        assert signal.growth_ratio == pytest.approx(2.0)
        assert s.last_signal is signal
        assert "Potential memory leak detected" in caplog.text

    def test_heap_source_change_discards_history(self, caplog):
        provider = FakeProvider(heap=1 * MB)
        provider.heap_source = "tracemalloc"
        s = MemorySampler(provider=provider, clock=FakeClock())
        for _ in range(5):
            s.record_sample()

        provider.heap_source = "rss"
        provider.heap = 300 * MB
        with caplog.at_level(logging.WARNING):
            for _ in range(5):
                s.record_sample()

        assert [sample.heap_used for sample in s.samples] == [300 * MB] * 5
        assert not s.check_for_leaks().detected
        assert "Heap source changed from tracemalloc to rss" in caplog.text

    def test_stopping_tracemalloc_between_windows(self):
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already active")
        s = MemorySampler(provider=PsutilProvider())

        tracemalloc.start()
        try:
            for _ in range(5):
                s.record_sample()
        finally:
            tracemalloc.stop()
        for _ in range(5):
            s.record_sample()

        assert len(s.samples) == 5
        assert not s.check_for_leaks().detected

    def test_stable_source_keeps_history(self):
        provider = FakeProvider()
        provider.heap_source = "rss"
        s = MemorySampler(provider=provider, clock=FakeClock())
        for _ in range(12):
            s.record_sample()
        assert len(s.samples) == 12

    def test_stats(self, sampler):
        assert sampler.get_stats() is None
        sampler.record_sample()
        stats = sampler.get_stats()
        assert stats['measurements'] == 1
        assert stats['current']['heap_used'] == 10 * MB


class TestPeriodicSampling:

    def test_start_records_immediately(self):
        s = MemorySampler(provider=FakeProvider(), interval_s=60)
        try:
            s.start()
            assert s.is_running
            assert len(s.samples) == 1
        finally:
            s.stop()

    def test_collects_over_time(self):
        s = MemorySampler(provider=FakeProvider())
        try:
            s.start(interval_s=0.02)
            assert wait_for(lambda: len(s.samples) >= 4)
        finally:
            s.stop()

    def test_start_twice_is_noop(self):
        s = MemorySampler(provider=FakeProvider(), interval_s=60)
        try:
            s.start()
            s.start()
            assert len(s.samples) == 1
        finally:
            s.stop()

    def test_stop_halts_sampling(self):
        s = MemorySampler(provider=FakeProvider())
        s.start(interval_s=0.02)
        assert wait_for(lambda: len(s.samples) >= 2)

        s.stop()
        s.stop()
        settled = len(s.samples)
        time.sleep(0.1)

        assert not s.is_running
        assert len(s.samples) == settled

    def test_stop_without_start(self, sampler):
        sampler.stop()
        assert not sampler.is_running

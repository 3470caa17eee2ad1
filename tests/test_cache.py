"""
Tests for the fingerprint-keyed result cache.
"""

import threading
import time

import pytest

from pokal.cache import Fingerprint, ResultCache

SNAPSHOT = Fingerprint(competition_count=3, digest="abc")
OTHER = Fingerprint(competition_count=4, digest="def")


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class Counter:
    """compute_fn that counts its calls."""

    def __init__(self, value=42):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class TestGetOrCompute:
    """Tests for ResultCache.get_or_compute."""

    def test_computes_once(self):
        cache = ResultCache()
        compute = Counter()
        assert cache.get_or_compute((SNAPSHOT, 'stats'), compute) == 42
        assert cache.get_or_compute((SNAPSHOT, 'stats'), compute) == 42
        assert compute.calls == 1
        assert cache.stats() == {'size': 1, 'hits': 1, 'misses': 1}

    def test_labels_are_separate(self):
        cache = ResultCache()
        cache.get_or_compute((SNAPSHOT, 'stats'), Counter(1))
        assert cache.get_or_compute((SNAPSHOT, 'trends'), Counter(2)) == 2
        assert len(cache) == 2

    def test_expiry(self):
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=300, clock=clock)
        compute = Counter()
        cache.get_or_compute(SNAPSHOT, compute)
        clock.now = 299.0
        cache.get_or_compute(SNAPSHOT, compute)
        assert compute.calls == 1
        clock.now = 300.0
        cache.get_or_compute(SNAPSHOT, compute)
        assert compute.calls == 2

    def test_expired_entries_of_other_keys_are_dropped(self):
        clock = FakeClock()
        cache = ResultCache(ttl_seconds=300, clock=clock)
        cache.get_or_compute((SNAPSHOT, 'stats'), Counter())
        cache.get_or_compute((SNAPSHOT, 'trends'), Counter())
        clock.now = 400.0
        cache.get_or_compute((OTHER, 'stats'), Counter())
        assert len(cache) == 1
        assert cache.stats()['size'] == 1

    def test_failure_not_cached(self):
        cache = ResultCache()

        def broken():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            cache.get_or_compute(SNAPSHOT, broken)
        assert len(cache) == 0
        assert cache.get_or_compute(SNAPSHOT, Counter(7)) == 7

    def test_concurrent_callers_share_one_computation(self):
        cache = ResultCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow():
            calls.append('slow')
            started.set()
            release.wait(5)
            return 42

        def other():
            calls.append('other')
            return 0

        results = []
        first = threading.Thread(target=lambda: results.append(cache.get_or_compute(SNAPSHOT, slow)))
        first.start()
        assert started.wait(5)
        second = threading.Thread(target=lambda: results.append(cache.get_or_compute(SNAPSHOT, other)))
        second.start()
        time.sleep(0.05)
        release.set()
        first.join(5)
        second.join(5)

        assert results == [42, 42]
        assert calls == ['slow']

    def test_waiters_see_the_failure(self):
        cache = ResultCache()
        started = threading.Event()
        release = threading.Event()

        def slow_failure():
            started.set()
            release.wait(5)
            raise ValueError("bad input")

        errors = []

        def call():
            try:
                cache.get_or_compute(SNAPSHOT, slow_failure)
            except ValueError as exc:
                errors.append(str(exc))

        first = threading.Thread(target=call)
        first.start()
        assert started.wait(5)
        second = threading.Thread(target=call)
        second.start()
        time.sleep(0.05)
        release.set()
        first.join(5)
        second.join(5)

        assert errors == ["bad input", "bad input"]
        assert len(cache) == 0


class TestInvalidate:
    """Tests for ResultCache.invalidate."""

    def test_invalidate_all(self):
        cache = ResultCache()
        cache.get_or_compute((SNAPSHOT, 'stats'), Counter())
        cache.get_or_compute((OTHER, 'stats'), Counter())
        assert cache.invalidate() == 2
        assert len(cache) == 0

    def test_invalidate_one_fingerprint(self):
        cache = ResultCache()
        cache.get_or_compute((SNAPSHOT, 'stats'), Counter())
        cache.get_or_compute((SNAPSHOT, 'trends'), Counter())
        cache.get_or_compute((OTHER, 'stats'), Counter())
        assert cache.invalidate(SNAPSHOT) == 2
        assert len(cache) == 1

    def test_recompute_after_invalidate_is_identical(self):
        cache = ResultCache()
        first = cache.get_or_compute(SNAPSHOT, lambda: {'a': frozenset({'first_win'})})
        cache.invalidate()
        second = cache.get_or_compute(SNAPSHOT, lambda: {'a': frozenset({'first_win'})})
        assert first == second

    def test_invalidate_during_computation(self):
        cache = ResultCache()

        def compute():
            cache.invalidate()
            return 1

        assert cache.get_or_compute(SNAPSHOT, compute) == 1
        assert len(cache) == 0

"""Tests for the single-flight memoizer."""

import gc
import threading
import time
import weakref
from concurrent.futures import ThreadPoolExecutor

import pytest

from azure_binding.common.memoizer import memoize


class Counter:
    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self, *args):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return object()


# =============================================================================
# Caching
# =============================================================================


class TestMemoize:
    def test_creates_once_per_key(self):
        cache = {}
        producer = Counter()
        get = memoize(cache, producer)

        first = get("orders")
        second = get("orders")

        assert first is second
        assert producer.calls == 1
        assert cache == {"orders": first}

    def test_distinct_keys_create_distinct_values(self):
        producer = Counter()
        get = memoize({}, producer)

        assert get("a") is not get("b")
        assert producer.calls == 2

    def test_multiple_args_keyed_by_tuple(self):
        cache = {}
        get = memoize(cache, lambda name, group: f"{name}/{group}")

        assert get("orders", "$Default") == "orders/$Default"
        assert cache == {("orders", "$Default"): "orders/$Default"}

    def test_custom_key(self):
        cache = {}
        get = memoize(cache, lambda name: name.upper(), key=lambda name: name.lower())

        assert get("Orders") == "ORDERS"
        assert get("ORDERS") == "ORDERS"
        assert list(cache) == ["orders"]

    def test_removed_key_is_recreated(self):
        cache = {}
        producer = Counter()
        get = memoize(cache, producer)

        first = get("k")
        cache.pop("k")
        second = get("k")

        assert first is not second
        assert producer.calls == 2

    def test_prepopulated_cache_is_used(self):
        producer = Counter()
        get = memoize({"k": "existing"}, producer)

        assert get("k") == "existing"
        assert producer.calls == 0


# =============================================================================
# Failures
# =============================================================================


class TestMemoizeFailures:
    def test_failure_not_cached(self):
        cache = {}
        attempts = []

        def producer(name):
            attempts.append(name)
            if len(attempts) == 1:
                raise RuntimeError("transport down")
            return "client"

        get = memoize(cache, producer)

        with pytest.raises(RuntimeError, match="transport down"):
            get("orders")
        assert cache == {}

        assert get("orders") == "client"
        assert len(attempts) == 2


# =============================================================================
# Concurrency
# =============================================================================


class TestMemoizeConcurrency:
    def test_single_flight_under_contention(self):
        cache = {}
        producer = Counter(delay=0.05)
        get = memoize(cache, producer)
        barrier = threading.Barrier(16)

        def call():
            barrier.wait()
            return get("orders")

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: call(), range(16)))

        assert producer.calls == 1
        assert all(r is results[0] for r in results)

    def test_other_keys_not_blocked_by_slow_producer(self):
        started = threading.Event()
        release = threading.Event()

        def producer(name):
            if name == "slow":
                started.set()
                release.wait(timeout=5)
            return name

        get = memoize({}, producer)

        with ThreadPoolExecutor(max_workers=2) as pool:
            slow = pool.submit(get, "slow")
            assert started.wait(timeout=5)
            assert get("fast") == "fast"
            release.set()
            assert slow.result(timeout=5) == "slow"


class Handle:
    """Hashable, weak-referenceable key like a client handle."""


class TestKeyRelease:
    def test_key_not_retained_after_removal(self):
        cache = {}
        get = memoize(cache, lambda handle, partition: object(), key=lambda h, p: (h, p))
        handle = Handle()
        ref = weakref.ref(handle)

        get(handle, "0")
        cache.clear()
        del handle
        gc.collect()

        assert ref() is None

    def test_key_not_retained_after_failure(self):
        def producer(handle):
            raise RuntimeError("boom")

        get = memoize({}, producer)
        handle = Handle()
        ref = weakref.ref(handle)

        with pytest.raises(RuntimeError):
            get(handle)
        del handle
        gc.collect()

        assert ref() is None

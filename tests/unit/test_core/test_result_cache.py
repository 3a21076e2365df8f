"""Unit tests for the query-result cache."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from pagekit.core.pagination.cache import QueryResultCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestQueryResultCache:
    def test_get_and_set(self):
        cache = QueryResultCache()

        assert cache.get("k") is None
        cache.set("k", "page")

        assert cache.get("k") == "page"
        assert cache.get_cache_info()["hits"] == 1
        assert cache.get_cache_info()["misses"] == 1

    def test_entries_expire(self):
        clock = FakeClock()
        cache = QueryResultCache(ttl_seconds=5, clock=clock)
        cache.set(("plan", "next"), "page")

        clock.now = 4.9
        assert cache.get(("plan", "next")) == "page"

        clock.now = 5.0
        assert cache.get(("plan", "next")) is None
        assert len(cache) == 0

    def test_least_recently_used_is_evicted(self):
        cache = QueryResultCache(max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")

        cache.set("c", 3)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_clear(self):
        cache = QueryResultCache()
        cache.set("a", 1)

        cache.clear()

        assert len(cache) == 0

    def test_concurrent_access(self):
        cache = QueryResultCache(max_entries=50)

        def worker(n: int) -> None:
            for i in range(200):
                cache.set((n, i % 60), i)
                cache.get((n, (i * 7) % 60))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(worker, range(8)))

        info = cache.get_cache_info()
        assert info["entries"] == 50
        assert info["hits"] + info["misses"] == 8 * 200

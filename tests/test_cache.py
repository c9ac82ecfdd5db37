"""Tests for the result cache."""
import asyncio

import pytest

from fragrance_search.cache import ResultCache, autocomplete_cache_key, search_cache_key
from fragrance_search.models import CacheStats, SearchOptions


@pytest.fixture
def cache(fake_clock):
    return ResultCache(default_ttl=300, check_period=60, maxsize=100, timer=fake_clock)


class TestCacheKeys:
    def test_query_is_normalized(self):
        assert search_cache_key("  Bleu  de Chanel ", SearchOptions()) == search_cache_key("bleu de chanel", SearchOptions())

    def test_force_refresh_does_not_change_key(self):
        assert search_cache_key("eros", SearchOptions(force_refresh=True)) == search_cache_key("eros", SearchOptions())

    def test_options_change_key(self):
        assert search_cache_key("eros", SearchOptions(limit=5)) != search_cache_key("eros", SearchOptions())
        assert search_cache_key("eros", SearchOptions(include_metadata=True)) != search_cache_key("eros", SearchOptions())

    def test_namespaces_are_distinct(self):
        assert search_cache_key("eros", SearchOptions()).startswith("search:eros:")
        assert autocomplete_cache_key("Eros", 10) == "autocomplete:eros:10"


class TestResultCache:
    def test_get_missing(self, cache):
        assert cache.get("nope") is None
        assert cache.stats() == CacheStats(hits=0, misses=1, keys=0)

    def test_set_and_get(self, cache):
        cache.set("k", ["Sauvage by Dior"])
        assert cache.get("k") == ["Sauvage by Dior"]
        assert cache.stats() == CacheStats(hits=1, misses=0, keys=1)

    def test_entries_expire_after_ttl(self, cache, fake_clock):
        cache.set("k", "value")
        fake_clock.advance(299)
        assert cache.get("k") == "value"
        fake_clock.advance(2)
        assert cache.get("k") is None

    def test_per_entry_ttl(self, cache, fake_clock):
        cache.set("short", 1, ttl=10)
        cache.set("long", 2)
        fake_clock.advance(11)
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_sweep_removes_expired(self, cache, fake_clock):
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=10)
        cache.set("c", 3)
        fake_clock.advance(11)
        assert cache.sweep() == 2
        assert cache.stats().keys == 1

    def test_flush_keeps_counters(self, cache):
        cache.set("a", 1)
        cache.get("a")
        cache.flush()
        assert cache.get("a") is None
        assert cache.stats() == CacheStats(hits=1, misses=1, keys=0)

    def test_bounded_size(self, fake_clock):
        cache = ResultCache(maxsize=2, timer=fake_clock)
        for key in ("a", "b", "c"):
            cache.set(key, key)
        assert cache.stats().keys == 2

    def test_falsy_values_are_hits(self, cache):
        cache.set("empty", [])
        assert cache.get("empty") == []
        assert cache.stats().hits == 1


@pytest.mark.asyncio
class TestSweeper:
    async def test_sweeper_runs_periodically(self, fake_clock):
        cache = ResultCache(default_ttl=1, check_period=0.01, timer=fake_clock)
        cache.set("k", "v")
        fake_clock.advance(5)

        cache.start_sweeper()
        await asyncio.sleep(0.05)
        await cache.stop_sweeper()

        # Counted directly so the stats() sweep does not do the work
        assert len(cache._entries) == 0

    async def test_stop_without_start(self):
        await ResultCache().stop_sweeper()

    async def test_start_is_idempotent(self):
        cache = ResultCache(check_period=60)
        cache.start_sweeper()
        task = cache._sweeper
        cache.start_sweeper()
        assert cache._sweeper is task
        await cache.stop_sweeper()

"""Tests for the local LRU/TTL tier."""

from __future__ import annotations

from docchat.cache.memory import MemoryCache
from docchat.cache.models import CacheEntry


class TestCacheEntry:
    def test_fresh_within_ttl(self) -> None:
        entry = CacheEntry(data="v", timestamp=1000.0)
        assert entry.is_stale(500, at_ms=1400.0) is False

    def test_boundary_is_fresh(self) -> None:
        entry = CacheEntry(data="v", timestamp=1000.0)
        assert entry.is_stale(500, at_ms=1500.0) is False

    def test_stale_after_ttl(self) -> None:
        entry = CacheEntry(data="v", timestamp=1000.0)
        assert entry.is_stale(500, at_ms=1501.0) is True

    def test_no_ttl_never_stale(self) -> None:
        entry = CacheEntry(data="v", timestamp=0.0)
        assert entry.is_stale(0, at_ms=10**12) is False


class TestMemoryCache:
    def test_put_and_get(self, clock) -> None:
        cache = MemoryCache(clock=clock)
        cache.put("key1", CacheEntry(data={"answer": 42}, timestamp=clock()))
        entry = cache.get("key1")
        assert entry is not None
        assert entry.data == {"answer": 42}

    def test_get_miss_returns_none(self) -> None:
        assert MemoryCache().get("nonexistent") is None

    def test_lru_eviction(self, clock) -> None:
        cache = MemoryCache(max_entries=2, clock=clock)
        cache.put("a", CacheEntry(data=1, timestamp=clock()))
        cache.put("b", CacheEntry(data=2, timestamp=clock()))
        cache.get("a")  # a becomes most recently used
        cache.put("c", CacheEntry(data=3, timestamp=clock()))
        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_replace_does_not_grow(self, clock) -> None:
        cache = MemoryCache(max_entries=2, clock=clock)
        cache.put("a", CacheEntry(data=1, timestamp=clock()))
        cache.put("a", CacheEntry(data=2, timestamp=clock()))
        assert len(cache) == 1
        assert cache.get("a").data == 2

    def test_stale_entry_returned_once_then_evicted(self, clock) -> None:
        cache = MemoryCache(ttl_ms=1000, clock=clock)
        cache.put("k", CacheEntry(data="v", timestamp=clock()))
        clock.advance(1001)
        entry = cache.get("k")
        assert entry is not None
        assert entry.data == "v"
        assert "k" not in cache
        assert cache.get("k") is None

    def test_stale_entry_hidden_without_allow_stale(self, clock) -> None:
        cache = MemoryCache(ttl_ms=1000, allow_stale=False, clock=clock)
        cache.put("k", CacheEntry(data="v", timestamp=clock()))
        clock.advance(1001)
        assert cache.get("k") is None

    def test_delete(self, clock) -> None:
        cache = MemoryCache(clock=clock)
        cache.put("k", CacheEntry(data="v", timestamp=clock()))
        assert cache.delete("k") is True
        assert cache.delete("k") is False

    def test_clear_returns_count(self, clock) -> None:
        cache = MemoryCache(clock=clock)
        cache.put("a", CacheEntry(data=1, timestamp=clock()))
        cache.put("b", CacheEntry(data=2, timestamp=clock()))
        assert cache.clear() == 2
        assert len(cache) == 0

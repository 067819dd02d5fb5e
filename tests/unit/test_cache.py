"""Unit tests for the LRU result cache."""

from __future__ import annotations

import threading

import pytest

from udger_local_parser.cache import LRUCache


class TestLRUCache:

    def test_get_missing_returns_none(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        assert cache.get("missing") is None

    def test_set_then_get(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        assert cache.get("a") == 1
        assert "a" in cache
        assert len(cache) == 1

    def test_oldest_evicted_when_full(self) -> None:
        cache: LRUCache[str, int] = LRUCache(3)
        for index, key in enumerate(["a", "b", "c", "d"]):
            cache.set(key, index)
        assert len(cache) == 3
        assert "a" not in cache
        assert cache.get("d") == 3

    def test_get_refreshes_recency(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert "a" in cache
        assert "b" not in cache

    def test_set_existing_key_replaces_without_growing(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.set("a", 2)
        assert len(cache) == 1
        assert cache.get("a") == 2

    def test_setdefault_keeps_first_value(self) -> None:
        cache: LRUCache[str, object] = LRUCache(2)
        first, second = object(), object()
        assert cache.setdefault("k", first) is first
        assert cache.setdefault("k", second) is first

    def test_setdefault_evicts(self) -> None:
        cache: LRUCache[str, int] = LRUCache(1)
        cache.setdefault("a", 1)
        cache.setdefault("b", 2)
        assert "a" not in cache
        assert cache.get("b") == 2

    def test_clear(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.clear()
        assert len(cache) == 0

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            LRUCache(0)

    def test_concurrent_writers_respect_capacity(self) -> None:
        cache: LRUCache[int, int] = LRUCache(50)

        def writer(offset: int) -> None:
            for value in range(200):
                cache.set(offset * 1000 + value, value)
                cache.get(offset * 1000 + value // 2)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 50

"""Tests for the session result cache."""

from logomatch.cache import ResultCache
from logomatch.config import CacheConfig
from logomatch.types import Candidate, CatalogEntry


def _candidates(name: str) -> list[Candidate]:
    return [Candidate(entry=CatalogEntry(name), score=0.1)]


def test_miss_then_hit():
    cache = ResultCache()
    assert cache.get("lincoln") is None

    cache.put("lincoln", _candidates("LINCOLN HIGH"))

    assert cache.get("LINCOLN") == _candidates("LINCOLN HIGH")
    assert cache.hits == 1
    assert cache.misses == 1


def test_keys_are_normalized():
    cache = ResultCache()
    cache.put("  Lincoln ", [])
    assert "LINCOLN" in cache
    assert cache.get("lincoln") == []
    assert len(cache) == 1


def test_first_put_wins():
    cache = ResultCache()
    cache.put("A", _candidates("FIRST"))
    cache.put("a", _candidates("SECOND"))
    assert cache.get("A")[0].entry.name == "FIRST"


def test_get_returns_copy():
    cache = ResultCache()
    cache.put("A", _candidates("X"))
    cache.get("A").clear()
    assert len(cache.get("A")) == 1


def test_unbounded_by_default():
    cache = ResultCache()
    for i in range(100):
        cache.put(f"q{i}", [])
    assert len(cache) == 100
    assert cache.evictions == 0


def test_max_size_evicts_least_recently_used():
    cache = ResultCache(CacheConfig(max_size=2))
    cache.put("A", [])
    cache.put("B", [])
    cache.get("A")
    cache.put("C", [])

    assert "A" in cache
    assert "B" not in cache
    assert "C" in cache
    assert cache.evictions == 1


def test_non_string_not_contained():
    assert 42 not in ResultCache()

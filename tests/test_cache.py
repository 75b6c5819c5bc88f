"""Tests for the on-disk fetch cache."""

from versioncheck.core.cache import MemoryCache, SourceCache


def test_missing_key(tmp_path):
    with SourceCache(tmp_path / "cache.db") as cache:
        assert cache.get("https://example.com") is None


def test_put_then_get(tmp_path):
    with SourceCache(tmp_path / "cache.db") as cache:
        cache.put("https://example.com/index.yaml", "apiVersion: v1")
        assert cache.get("https://example.com/index.yaml") == "apiVersion: v1"


def test_last_writer_wins(tmp_path):
    with SourceCache(tmp_path / "cache.db") as cache:
        cache.put("key", "first")
        cache.put("key", "second")
        assert cache.get("key") == "second"


def test_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "cache.db"
    with SourceCache(path) as cache:
        cache.put("key", "body")
    with SourceCache(path) as cache:
        assert cache.get("key") == "body"


def test_memory_cache_contract():
    cache = MemoryCache({"a": "1"})
    assert cache.get("a") == "1"
    assert cache.get("b") is None
    cache.put("b", "2")
    assert cache.get("b") == "2"

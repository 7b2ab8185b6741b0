"""Tests for the JSON cache store."""

from __future__ import annotations

import json
import logging

from ccf_lens.cache import CacheStore


class TestMemoryCache:
    """Tests for a cache without a backing file."""

    def test_unset_key_is_none(self):
        assert CacheStore(None).get("missing") is None

    def test_round_trip(self):
        cache = CacheStore(None)
        cache.set("dblp_attention", {"found": True, "venue": "NeurIPS"})
        assert cache.get("dblp_attention") == {"found": True, "venue": "NeurIPS"}

    def test_keys_are_normalized(self):
        cache = CacheStore(None)
        cache.set("Some  Title", 1)
        assert cache.get("some title") == 1
        assert "SOME TITLE" in cache
        assert len(cache) == 1

    def test_clear(self):
        cache = CacheStore(None)
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_delete(self):
        cache = CacheStore(None)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        cache.delete("never-set")
        assert cache.get("a") is None
        assert cache.get("b") == 2

    def test_empty_store_is_truthy(self):
        cache = CacheStore(None)
        assert len(cache) == 0
        assert cache
        assert (cache or CacheStore(None)) is cache


class TestDiskCache:
    """Tests for persistence across instances."""

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "cache.json")
        CacheStore(path).set("dblp_x", {"found": False})
        assert CacheStore(path).get("dblp_x") == {"found": False}

    def test_file_contains_timestamped_records(self, tmp_path):
        path = tmp_path / "cache.json"
        CacheStore(str(path)).set("key", "value")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["key"]["value"] == "value"
        assert "timestamp" in data["key"]

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "cache.json"
        cache = CacheStore(str(path))
        for i in range(3):
            cache.set(f"k{i}", i)
        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_corrupt_file_loads_empty(self, tmp_path, caplog):
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            cache = CacheStore(str(path))
        assert len(cache) == 0
        assert "Ignoring unreadable cache file" in caplog.text

    def test_unwritable_location_keeps_memory_value(self, tmp_path, caplog):
        path = tmp_path / "missing-dir" / "cache.json"
        cache = CacheStore(str(path))
        with caplog.at_level(logging.WARNING):
            cache.set("a", 1)
        assert cache.get("a") == 1
        assert "Could not persist cache" in caplog.text


class TestExpiry:
    """Tests for the optional TTL."""

    def test_expired_entry_reads_as_absent(self):
        cache = CacheStore(None, ttl_days=1)
        cache.set("old", 1)
        cache.data["old"]["timestamp"] -= 2 * 86400
        assert cache.get("old") is None

    def test_fresh_entry_is_returned(self):
        cache = CacheStore(None, ttl_days=1)
        cache.set("new", 1)
        assert cache.get("new") == 1

    def test_cleanup_expired(self):
        cache = CacheStore(None, ttl_days=1)
        cache.set("old", 1)
        cache.set("new", 2)
        cache.data["old"]["timestamp"] -= 2 * 86400
        assert cache.cleanup_expired() == 1
        assert len(cache) == 1

    def test_no_ttl_never_expires(self):
        cache = CacheStore(None)
        cache.set("old", 1)
        cache.data["old"]["timestamp"] = 0.0
        assert cache.get("old") == 1
        assert cache.cleanup_expired() == 0

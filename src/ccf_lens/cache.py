"""Key/value cache for external lookup results.

Reuses the on-disk JSON cache pattern (lock + atomic temp-file replace) for
memoizing DBLP lookups across runs. Only successful and definitively
negative results are ever written; callers must not store error results.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from typing import Any

from ccf_lens.utils import normalize_cache_key

logger = logging.getLogger(__name__)


class CacheStore:
    """Thread-safe JSON cache keyed by normalized strings.

    Each value is stored together with its write timestamp so that an
    optional TTL can be applied on read. With ``path=None`` values live in
    process memory only.
    """

    def __init__(self, path: str | None = None, ttl_days: float | None = None) -> None:
        """Initialize the cache.

        Args:
            path: Path to the cache file. If None, the cache is memory-only.
            ttl_days: Optional time-to-live in days. None keeps entries until clear().
        """
        self.path = path
        self.ttl_days = ttl_days
        self.lock = threading.Lock()
        self.data: dict[str, dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        """Load cache from disk."""
        if self.path and os.path.exists(self.path):
            try:
                with open(self.path, encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable cache file %s: %s", self.path, e)
                return
            if isinstance(loaded, dict):
                self.data = {k: v for k, v in loaded.items() if isinstance(v, dict) and "value" in v}

    def _save(self) -> None:
        """Save cache to disk atomically. Write failures are logged, not raised."""
        if not self.path:
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_name = None
        try:
            tmp = tempfile.NamedTemporaryFile(
                "w", delete=False, encoding="utf-8", dir=directory, suffix=".json", prefix=".tmp_ccf_cache_"
            )
            tmp_name = tmp.name
            try:
                json.dump(self.data, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            finally:
                tmp.close()
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not persist cache to %s: %s", self.path, e)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _expired(self, record: dict[str, Any], now: float) -> bool:
        if self.ttl_days is None:
            return False
        age_days = (now - record.get("timestamp", 0.0)) / 86400
        return age_days > self.ttl_days

    def get(self, key: str) -> Any | None:
        """Get a cached value, or None if absent or expired."""
        norm = normalize_cache_key(key)
        with self.lock:
            record = self.data.get(norm)
            if record is None or self._expired(record, time.time()):
                return None
            return record["value"]

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under the normalized key."""
        norm = normalize_cache_key(key)
        with self.lock:
            self.data[norm] = {"value": value, "timestamp": time.time()}
            self._save()

    def delete(self, key: str) -> None:
        """Remove a cached entry if present."""
        norm = normalize_cache_key(key)
        with self.lock:
            if self.data.pop(norm, None) is not None:
                self._save()

    def clear(self) -> None:
        """Clear all cached entries."""
        with self.lock:
            self.data = {}
            self._save()

    def cleanup_expired(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of entries removed.
        """
        removed = 0
        with self.lock:
            now = time.time()
            for key in [k for k, record in self.data.items() if self._expired(record, now)]:
                del self.data[key]
                removed += 1
            if removed > 0:
                self._save()
        return removed

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __len__(self) -> int:
        with self.lock:
            return len(self.data)

    def __bool__(self) -> bool:
        # An empty store is still a usable store
        return True

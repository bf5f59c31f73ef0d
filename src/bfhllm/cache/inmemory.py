"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from threading import Lock

from .base import CacheEntry, CacheStats, ResponseCache

logger = logging.getLogger("bfhllm.cache")


class TTLCache(ResponseCache):
    """
    Thread-safe in-memory response cache with lazy TTL expiry.

    Entries older than `ttl_seconds` read as missing but stay in memory
    until `clear()`. Hit/miss counters are informational only.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        *,
        scope: str = "process",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.scope = scope
        self._clock = clock
        self._rows: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        now = self._clock()
        with self._lock:
            row = self._rows.get(key)
            if row is None or now - row.created_at > self.ttl_seconds:
                self._misses += 1
                logger.debug("cache miss scope=%s key=%s", self.scope, key)
                return None
            self._hits += 1
        logger.debug("cache hit scope=%s key=%s", self.scope, key)
        return row.value

    def set(self, key: str, value: str) -> None:
        entry = CacheEntry(value=value, created_at=self._clock())
        with self._lock:
            self._rows[key] = entry

    def clear(self) -> int:
        with self._lock:
            removed = len(self._rows)
            self._rows = {}
        return removed

    def stats(self) -> CacheStats:
        with self._lock:
            oldest = min((row.created_at for row in self._rows.values()), default=None)
            return CacheStats(
                entries=len(self._rows),
                ttl_seconds=self.ttl_seconds,
                oldest_entry_timestamp=oldest,
                hits=self._hits,
                misses=self._misses,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def __repr__(self) -> str:
        stats = self.stats()
        return (
            f"<{type(self).__name__} scope={self.scope!r} entries={stats.entries} "
            f"ttl={stats.ttl_seconds}s>"
        )


class ProcessCache(TTLCache):
    """Cache living for the lifetime of the host process. Create one explicitly."""

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached response with its creation timestamp."""

    value: str
    created_at: float


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time cache statistics."""

    entries: int
    ttl_seconds: float
    oldest_entry_timestamp: float | None
    hits: int = 0
    misses: int = 0


@runtime_checkable
class ResponseCache(Protocol):
    """Contract shared by process-scoped and session-scoped caches."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def clear(self) -> int: ...

    def stats(self) -> CacheStats: ...

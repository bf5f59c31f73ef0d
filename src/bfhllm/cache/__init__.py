"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheEntry, CacheStats, ResponseCache
from .inmemory import ProcessCache, TTLCache
from .keys import generate_cache_key
from .session import Session, SessionCache, session_cache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ResponseCache",
    "TTLCache",
    "ProcessCache",
    "Session",
    "SessionCache",
    "session_cache",
    "generate_cache_key",
]

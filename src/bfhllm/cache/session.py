"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Session-scoped cache adapter.

Each session owns its own `TTLCache` stored in the session's `user_data`
slot, so two sessions never share storage even when they derive equal keys.
The store is created once per session and cleared when the session ends.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, MutableMapping
from typing import Any, Protocol

from ..errors import LLMConfigurationError
from .base import CacheStats, ResponseCache
from .inmemory import TTLCache

logger = logging.getLogger("bfhllm.cache.session")

SESSION_CACHE_SLOT = "bfhllm_cache"

# Guards first-time slot initialization across concurrent creators.
_INIT_LOCK = threading.Lock()


class Session(Protocol):
    """Minimal session surface consumed by the cache adapter."""

    user_data: MutableMapping[str, Any]

    def on_end(self, callback: Callable[[], None]) -> Any: ...


class SessionCache(ResponseCache):
    """Thin `ResponseCache` view over the store kept in a session slot."""

    def __init__(self, session: Session, store: TTLCache) -> None:
        self._session = session
        self._store = store

    @property
    def ttl_seconds(self) -> float:
        return self._store.ttl_seconds

    @property
    def scope(self) -> str:
        return self._store.scope

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store.set(key, value)

    def clear(self) -> int:
        return self._store.clear()

    def stats(self) -> CacheStats:
        return self._store.stats()

    def __repr__(self) -> str:
        stats = self.stats()
        return (
            f"<SessionCache scope={self.scope!r} entries={stats.entries} "
            f"ttl={stats.ttl_seconds}s storage=session.user_data>"
        )


def session_cache(
    session: Session,
    *,
    ttl_seconds: float = 3600,
    clock: Callable[[], float] | None = None,
) -> SessionCache:
    """
    Return the cache bound to `session`, creating it on first use.

    Repeated calls reuse the existing store, so `ttl_seconds` only applies
    on the first call for a session. Registers an end-of-session hook that
    clears every entry.
    """
    if session is None:
        raise LLMConfigurationError("session object required")
    user_data = getattr(session, "user_data", None)
    if not isinstance(user_data, MutableMapping):
        raise LLMConfigurationError("session must expose a mutable user_data mapping")

    with _INIT_LOCK:
        store = user_data.get(SESSION_CACHE_SLOT)
        if store is None:
            scope = f"session:{getattr(session, 'session_id', None) or id(session)}"
            kwargs: dict[str, Any] = {"scope": scope}
            if clock is not None:
                kwargs["clock"] = clock
            store = TTLCache(ttl_seconds, **kwargs)
            user_data[SESSION_CACHE_SLOT] = store
            session.on_end(_clear_on_end(store))

    return SessionCache(session, store)


def _clear_on_end(store: TTLCache) -> Callable[[], None]:
    def _callback() -> None:
        removed = store.clear()
        logger.info("bfhllm cache cleared on session end (%s, %d entries)", store.scope, removed)

    return _callback

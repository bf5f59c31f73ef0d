"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Chat orchestration: the single call path every feature funnels through.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .cache.base import ResponseCache
from .cache.inmemory import ProcessCache
from .cache.keys import generate_cache_key
from .cache.session import Session, SessionCache, session_cache
from .errors import (
    LLMError,
    LLMInvalidInputError,
    LLMInvalidResponseError,
    LLMProviderUnavailableError,
)
from .providers.contracts import LLMProvider
from .providers.registry import LLMProviderError, ProviderRegistry
from .runtime.circuit_breaker import CircuitBreaker, CircuitBreakerStatus
from .runtime.gateway import ProviderGateway
from .sanitizer import ResponseSanitizer
from .settings import LLMConfigStore, LLMSettings
from .types import ChatResult
from .utils import run_sync

logger = logging.getLogger("bfhllm.chat")


class ChatOrchestrator:
    """
    Cache-first, breaker-guarded chat runtime.

    Collaborators are constructed by the host and passed in. Nothing here is
    a module-level singleton, so two orchestrators never share breaker or
    cache state unless the host shares the objects explicitly.
    """

    def __init__(
        self,
        *,
        config: LLMConfigStore | LLMSettings | None = None,
        providers: ProviderRegistry | None = None,
        breakers: Mapping[str, CircuitBreaker] | None = None,
        sanitizer: ResponseSanitizer | None = None,
    ) -> None:
        if isinstance(config, LLMSettings):
            config = LLMConfigStore(config)
        self.config = config or LLMConfigStore()
        self.providers = providers if providers is not None else ProviderRegistry.default()
        self.sanitizer = sanitizer or ResponseSanitizer()

        self._breakers: dict[str, CircuitBreaker] = {
            key.strip().lower(): value for key, value in (breakers or {}).items()
        }
        self._owned_breakers: set[str] = set()
        self._gateways: dict[str, ProviderGateway] = {}
        self._lock = threading.Lock()

    def breaker(self, provider_id: str | None = None) -> CircuitBreaker:
        """Return the breaker guarding `provider_id`, creating it on first use."""
        settings = self.config.get()
        key = (provider_id or settings.provider).strip().lower()
        with self._lock:
            existing = self._breakers.get(key)
            if existing is not None:
                if key in self._owned_breakers:
                    existing.policy = settings.circuit_breaker
                return existing
            breaker = CircuitBreaker(settings.circuit_breaker, name=key)
            self._breakers[key] = breaker
            self._owned_breakers.add(key)
            return breaker

    def breaker_status(self, provider_id: str | None = None) -> CircuitBreakerStatus:
        return self.breaker(provider_id).status()

    def process_cache(self, *, ttl_seconds: float | None = None) -> ProcessCache:
        """Create a process-lifetime cache using the configured TTL."""
        ttl = self.config.get().cache.ttl_s if ttl_seconds is None else ttl_seconds
        return ProcessCache(ttl)

    def session_cache(
        self,
        session: Session,
        *,
        ttl_seconds: float | None = None,
    ) -> SessionCache:
        """Return the idempotent cache bound to `session`."""
        ttl = self.config.get().cache.ttl_s if ttl_seconds is None else ttl_seconds
        return session_cache(session, ttl_seconds=ttl)

    def chat_available(self, provider_id: str | None = None) -> bool:
        """Check provider credentials and configuration validity."""
        settings = self.config.get()
        settings.validate()
        try:
            provider = self.providers.get(provider_id or settings.provider)
        except LLMProviderError as exc:
            logger.warning("%s", exc)
            return False
        return provider.validate_setup()

    async def chat(
        self,
        prompt: Any,
        *,
        model: str | None = None,
        provider: str | None = None,
        timeout_s: float | None = None,
        max_chars: int | None = None,
        cache: ResponseCache | None = None,
        validate: bool = True,
    ) -> ChatResult:
        """
        Execute one chat call and return its outcome.

        Order: prompt check, cache lookup, provider setup check, breaker and
        timeout guarded call, text extraction, sanitization, then cache
        store. Explicit arguments override configuration. Failures come back
        as `ChatResult.failure(...)` with a `FailureReason`. Only malformed
        configuration raises (`LLMConfigurationError`).
        """
        if not isinstance(prompt, str) or not prompt:
            return self._fail(
                LLMInvalidInputError("prompt must be a non-empty character string")
            )

        settings = self._resolve(
            model=model,
            provider=provider,
            timeout_s=timeout_s,
            max_chars=max_chars,
        )

        cache_key: str | None = None
        if cache is not None and settings.cache.enabled:
            cache_key = generate_cache_key(
                prompt=prompt,
                model=settings.model,
                provider=settings.provider,
            )
            cached = cache.get(cache_key)
            if cached is not None:
                return ChatResult.success(cached, cached=True)

        try:
            impl = self.providers.get(settings.provider)
        except LLMProviderError as exc:
            return self._fail(LLMProviderUnavailableError(str(exc)))

        if not impl.validate_setup():
            return self._fail(
                LLMProviderUnavailableError(
                    f"Provider '{settings.provider}' not properly configured"
                )
            )

        gateway = self._gateway(impl, settings)
        try:
            raw = await gateway.call(
                prompt,
                model=settings.model,
                timeout=settings.timeout_policy(),
            )
            text = self._extract(impl, raw)
        except LLMError as exc:
            return self._fail(exc)

        if validate:
            sanitized = self.sanitizer.validate(text, settings.max_response_chars)
            if sanitized is None:
                return self._fail(LLMInvalidResponseError("Response validation failed"))
            text = sanitized

        if cache_key is not None and cache is not None:
            cache.set(cache_key, text)
        return ChatResult.success(text)

    def chat_sync(self, prompt: Any, **kwargs: Any) -> ChatResult:
        """Synchronous wrapper around `chat`."""
        return run_sync(self.chat(prompt, **kwargs))

    def _resolve(
        self,
        *,
        model: str | None,
        provider: str | None,
        timeout_s: float | None,
        max_chars: int | None,
    ) -> LLMSettings:
        settings = self.config.get()
        updates: dict[str, Any] = {}
        if model is not None:
            updates["model"] = model
        if provider is not None:
            updates["provider"] = provider
        if timeout_s is not None:
            updates["timeout_s"] = timeout_s
        if max_chars is not None:
            updates["max_response_chars"] = max_chars
        if updates:
            settings = replace(settings, **updates)
        settings.validate()
        return replace(settings, provider=settings.provider.strip().lower())

    def _gateway(self, provider: LLMProvider, settings: LLMSettings) -> ProviderGateway:
        key = provider.provider_id.strip().lower()
        breaker = self.breaker(key)
        with self._lock:
            gateway = self._gateways.get(key)
            if gateway is None or gateway.provider is not provider:
                gateway = ProviderGateway(provider, breaker)
                self._gateways[key] = gateway
            gateway.breaker_enabled = settings.circuit_breaker.enabled
            return gateway

    @staticmethod
    def _extract(provider: LLMProvider, raw: Any) -> str:
        try:
            return provider.extract_text(raw)
        except LLMError:
            raise
        except Exception as exc:
            raise LLMInvalidInputError(f"Failed to extract text: {exc}") from exc

    @staticmethod
    def _fail(error: LLMError) -> ChatResult:
        logger.warning("chat failed reason=%s: %s", error.reason.value, error)
        return ChatResult.failure(error.reason, str(error))

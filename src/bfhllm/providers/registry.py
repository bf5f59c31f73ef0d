"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Thread-safe registry for LLM providers.
"""

from __future__ import annotations

from threading import Lock

from .contracts import LLMProvider


class LLMProviderError(RuntimeError):
    """Raised when provider registration/resolution fails."""


class ProviderRegistry:
    """Explicit mapping from provider id to implementation, owned by the host."""

    def __init__(self, providers: list[LLMProvider] | None = None) -> None:
        self._rows: dict[str, LLMProvider] = {}
        self._lock = Lock()
        for provider in providers or []:
            self.register(provider)

    @classmethod
    def default(cls) -> "ProviderRegistry":
        """Registry pre-populated with the built-in providers."""
        from .gemini import GeminiProvider

        return cls([GeminiProvider()])

    def register(self, provider: LLMProvider, *, overwrite: bool = False) -> None:
        """Register one provider under its stable id."""
        if not isinstance(provider, LLMProvider):
            raise LLMProviderError(
                f"{type(provider).__name__} does not implement LLMProvider"
            )
        provider_id = provider.provider_id.strip().lower()
        if not provider_id:
            raise LLMProviderError("Provider id must be non-empty")

        with self._lock:
            if provider_id in self._rows and not overwrite:
                raise LLMProviderError(f"Provider already registered: {provider_id}")
            self._rows[provider_id] = provider

    def get(self, provider_id: str) -> LLMProvider:
        """Resolve one registered provider by id."""
        key = provider_id.strip().lower()
        with self._lock:
            provider = self._rows.get(key)
        if provider is None:
            raise LLMProviderError(
                f"Unknown LLM provider '{provider_id}'. Available: {', '.join(self.list()) or 'none'}"
            )
        return provider

    def list(self) -> list[str]:
        """List registered provider ids in deterministic order."""
        with self._lock:
            return sorted(self._rows.keys())

    def __contains__(self, provider_id: object) -> bool:
        if not isinstance(provider_id, str):
            return False
        with self._lock:
            return provider_id.strip().lower() in self._rows

"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

LLM runtime settings and explicit config loading.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field, fields, replace
from typing import Any

from .errors import LLMConfigurationError
from .runtime.contracts import CachePolicy, CircuitBreakerPolicy, TimeoutPolicy

MODEL_ENV = "BFHLLM_MODEL"
TIMEOUT_ENV = "BFHLLM_TIMEOUT"


@dataclass(frozen=True, slots=True)
class LLMSettings:
    """Explicit settings used by the orchestrator and its collaborators."""

    provider: str = "gemini"
    model: str = "gemini-2.5-flash-lite"
    timeout_s: float = 10.0
    max_response_chars: int = 350
    circuit_breaker: CircuitBreakerPolicy = field(default_factory=CircuitBreakerPolicy)
    cache: CachePolicy = field(default_factory=CachePolicy)

    @staticmethod
    def from_env() -> "LLMSettings":
        """Load settings from environment variables."""
        return LLMSettings(
            provider=os.getenv("BFHLLM_PROVIDER", "gemini"),
            model=os.getenv(MODEL_ENV, "gemini-2.5-flash-lite"),
            timeout_s=float(os.getenv(TIMEOUT_ENV, "10")),
            max_response_chars=int(os.getenv("BFHLLM_MAX_RESPONSE_CHARS", "350")),
            circuit_breaker=CircuitBreakerPolicy(
                enabled=_as_bool(os.getenv("BFHLLM_BREAKER_ENABLED"), True),
                failure_threshold=int(os.getenv("BFHLLM_BREAKER_THRESHOLD", "5")),
                reset_timeout_s=float(os.getenv("BFHLLM_BREAKER_RESET_S", "300")),
            ),
            cache=CachePolicy(
                enabled=_as_bool(os.getenv("BFHLLM_CACHE_ENABLED"), True),
                ttl_s=float(os.getenv("BFHLLM_CACHE_TTL_S", "3600")),
            ),
        )

    def timeout_policy(self) -> TimeoutPolicy:
        """Adapt the flat timeout setting into a runtime policy."""
        return TimeoutPolicy(request_timeout_s=self.timeout_s)

    def validate(self) -> None:
        """Raise `LLMConfigurationError` when values violate the config contract."""
        if not isinstance(self.provider, str) or not self.provider.strip():
            raise LLMConfigurationError("provider must be a non-empty string")
        if not isinstance(self.model, str) or not self.model.strip():
            raise LLMConfigurationError("model must be a non-empty string")
        if not _is_number(self.timeout_s) or self.timeout_s <= 0:
            raise LLMConfigurationError(f"Invalid timeout_s: {self.timeout_s!r}")
        if not _is_number(self.max_response_chars) or self.max_response_chars <= 0:
            raise LLMConfigurationError(
                f"Invalid max_response_chars: {self.max_response_chars!r}"
            )
        if self.circuit_breaker.failure_threshold < 1:
            raise LLMConfigurationError("circuit_breaker.failure_threshold must be >= 1")
        if self.circuit_breaker.reset_timeout_s < 0:
            raise LLMConfigurationError("circuit_breaker.reset_timeout_s must be >= 0")
        if self.cache.ttl_s < 0:
            raise LLMConfigurationError("cache.ttl_s must be >= 0")


class LLMConfigStore:
    """
    Mutable configuration holder owned by the host application.

    Stored values are overridden at read time by `BFHLLM_MODEL` and
    `BFHLLM_TIMEOUT`. Explicit per-call arguments win over both and are
    applied by the orchestrator.
    """

    def __init__(self, settings: LLMSettings | None = None) -> None:
        self._lock = threading.Lock()
        self._settings = settings or LLMSettings()

    def configure(
        self,
        *,
        provider: str | None = None,
        model: str | None = None,
        timeout_s: float | None = None,
        max_response_chars: int | None = None,
        circuit_breaker: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
    ) -> LLMSettings:
        """Merge updates into stored settings and return the new value."""
        with self._lock:
            current = self._settings
            updates: dict[str, Any] = {}
            if provider is not None:
                updates["provider"] = provider
            if model is not None:
                updates["model"] = model
            if timeout_s is not None:
                updates["timeout_s"] = timeout_s
            if max_response_chars is not None:
                updates["max_response_chars"] = max_response_chars
            if circuit_breaker is not None:
                updates["circuit_breaker"] = _merge_policy(
                    current.circuit_breaker, circuit_breaker, "circuit_breaker"
                )
            if cache is not None:
                updates["cache"] = _merge_policy(current.cache, cache, "cache")

            candidate = replace(current, **updates)
            candidate.validate()
            self._settings = candidate
            return candidate

    def get(self) -> LLMSettings:
        """Return stored settings with environment overrides applied."""
        with self._lock:
            settings = self._settings

        env_model = os.getenv(MODEL_ENV, "")
        if env_model:
            settings = replace(settings, model=env_model)

        env_timeout = os.getenv(TIMEOUT_ENV, "")
        if env_timeout:
            try:
                timeout_s = float(env_timeout)
            except ValueError as exc:
                raise LLMConfigurationError(
                    f"{TIMEOUT_ENV} must be numeric, got {env_timeout!r}"
                ) from exc
            settings = replace(settings, timeout_s=timeout_s)

        return settings

    def reset(self) -> LLMSettings:
        """Restore package defaults."""
        with self._lock:
            self._settings = LLMSettings()
            return self._settings

    def validate(self) -> None:
        self.get().validate()


def _merge_policy(policy: Any, updates: dict[str, Any], name: str) -> Any:
    known = {f.name for f in fields(policy)}
    unknown = sorted(set(updates) - known)
    if unknown:
        raise LLMConfigurationError(
            f"Unknown {name} settings: {', '.join(unknown)}"
        )
    return replace(policy, **updates)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

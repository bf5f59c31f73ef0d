"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/gateway.py.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..errors import (
    LLMAPIError,
    LLMCircuitOpenError,
    LLMProviderUnavailableError,
    LLMTimeoutError,
)
from ..providers.contracts import LLMProvider
from .circuit_breaker import CircuitBreaker
from .contracts import TimeoutPolicy

logger = logging.getLogger("bfhllm.runtime.gateway")


class ProviderGateway:
    """Breaker-guarded, timeout-bounded calls into one provider."""

    def __init__(
        self,
        provider: LLMProvider,
        breaker: CircuitBreaker | None = None,
        *,
        breaker_enabled: bool = True,
    ) -> None:
        self.provider = provider
        self.breaker = breaker or CircuitBreaker(name=provider.provider_id)
        self.breaker_enabled = breaker_enabled

    async def call(
        self,
        prompt: str,
        *,
        model: str,
        timeout: TimeoutPolicy,
    ) -> Any:
        """
        Execute one provider call and return its raw response.

        Rejections by an open breaker are not recorded as failures. Timeouts
        and provider errors are recorded exactly once, then re-raised as
        `LLMTimeoutError` or `LLMAPIError`.
        """
        if self.breaker_enabled and self.breaker.is_open():
            logger.debug("provider=%s call rejected by open breaker", self.provider.provider_id)
            raise LLMCircuitOpenError(
                f"Circuit open for provider '{self.provider.provider_id}'"
            )

        timeout_s = timeout.request_timeout_s
        try:
            raw = await asyncio.wait_for(
                self.provider.call_api(prompt, model, timeout_s),
                timeout=timeout_s,
            )
        except LLMProviderUnavailableError:
            raise
        except (asyncio.TimeoutError, TimeoutError) as exc:
            self._record_failure()
            logger.warning("provider=%s timed out after %ss", self.provider.provider_id, timeout_s)
            raise LLMTimeoutError(
                f"API call timeout exceeded ({timeout_s}s)"
            ) from exc
        except Exception as exc:
            self._record_failure()
            raise LLMAPIError(f"API call failed: {exc}") from exc

        if self.breaker_enabled:
            self.breaker.record_success()
        return raw

    def _record_failure(self) -> None:
        if self.breaker_enabled:
            self.breaker.record_failure()

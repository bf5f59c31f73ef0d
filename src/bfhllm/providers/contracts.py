"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Provider contracts for pluggable text-generation backends.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LLMProvider(Protocol):
    """
    Capability set every provider implements.

    `call_api` may raise any transport, quota or timeout error. The gateway
    owns timeout enforcement and breaker bookkeeping, so providers must not
    catch and hide those errors.
    """

    provider_id: str

    def validate_setup(self) -> bool: ...

    async def call_api(self, prompt: str, model: str, timeout_s: float) -> Any: ...

    def extract_text(self, raw: Any) -> str: ...

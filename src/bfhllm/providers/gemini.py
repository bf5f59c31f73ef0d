"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Google Gemini provider built on the `google-genai` async client.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
import weakref
from collections.abc import Callable
from typing import Any

from ..errors import LLMProviderUnavailableError
from ..types import extract_text
from .contracts import LLMProvider

logger = logging.getLogger("bfhllm.providers.gemini")

API_KEY_ENVS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
PLACEHOLDER_API_KEY = "your_api_key_here"


def resolve_api_key() -> str | None:
    """Return the first configured Gemini key, or `None` when absent."""
    for name in API_KEY_ENVS:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return None


class GeminiProvider(LLMProvider):
    """Provider adapter for Google Gemini models."""

    provider_id = "gemini"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self._api_key = api_key
        self._client_factory = client_factory or _genai_client
        self._clients: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Any] = (
            weakref.WeakKeyDictionary()
        )
        self._lock = threading.Lock()

    def validate_setup(self) -> bool:
        """Check that credentials are present and not the template placeholder."""
        keys = [self._api_key] if self._api_key else [os.getenv(n, "") for n in API_KEY_ENVS]
        if not any(keys):
            logger.warning(
                "No API key found (%s)", " or ".join(API_KEY_ENVS)
            )
            return False
        if PLACEHOLDER_API_KEY in keys:
            logger.warning("Gemini API key appears to be a placeholder")
            return False
        return True

    async def call_api(self, prompt: str, model: str, timeout_s: float) -> Any:
        """Send one prompt to Gemini. Timeout is enforced by the caller."""
        _ = timeout_s
        client = self._build_client()
        return await client.aio.models.generate_content(model=model, contents=prompt)

    def extract_text(self, raw: Any) -> str:
        return extract_text(raw)

    def _build_client(self) -> Any:
        """
        Return the client bound to the running event loop.

        The SDK's async transport pools connections on the loop that created
        it, and `chat_sync` runs every call on a fresh loop, so clients are
        cached per loop and dropped together with it.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            client = self._clients.get(loop)
        if client is not None:
            return client

        api_key = self._api_key or resolve_api_key()
        if not api_key:
            raise LLMProviderUnavailableError("Gemini not configured. Check API key.")
        client = self._client_factory(api_key)
        with self._lock:
            # Clients can hold references to their loop, so prune closed ones.
            for stale in [key for key in self._clients if key.is_closed()]:
                del self._clients[stale]
            return self._clients.setdefault(loop, client)


def _genai_client(api_key: str) -> Any:
    try:
        from google import genai
    except Exception as e:  # pragma: no cover - environment dependent
        raise LLMProviderUnavailableError(
            "google-genai package is not installed. Install it with: pip install 'bfhllm[gemini]'"
        ) from e
    return genai.Client(api_key=api_key)

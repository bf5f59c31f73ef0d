"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines provider-agnostic types used across the chat call path.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from .errors import FailureReason, LLMInvalidInputError


@dataclass(frozen=True, slots=True)
class PlainText:
    """Provider returned a bare string."""

    text: str


@dataclass(frozen=True, slots=True)
class Structured:
    """Provider returned an object carrying a text field."""

    text: str


ProviderResponse: TypeAlias = PlainText | Structured


def to_provider_response(raw: Any) -> ProviderResponse:
    """
    Classify a raw provider payload into the `ProviderResponse` union.

    Accepted shapes are a `str`, a mapping with a string `"text"` key or an
    object exposing a string `text` attribute. Anything else raises
    `LLMInvalidInputError`.
    """
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, Mapping):
        text = raw.get("text")
        if isinstance(text, str):
            return Structured(text)
    else:
        text = getattr(raw, "text", None)
        if isinstance(text, str):
            return Structured(text)
    raise LLMInvalidInputError(
        f"Unexpected provider response shape: {type(raw).__name__}"
    )


def extract_text(raw: Any) -> str:
    """Return plain text from any supported provider response shape."""
    response = raw if isinstance(raw, (PlainText, Structured)) else to_provider_response(raw)
    match response:
        case PlainText(text=text):
            return text
        case Structured(text=text):
            return text
    raise LLMInvalidInputError(f"Unhandled provider response: {response!r}")


@dataclass(frozen=True, slots=True)
class ChatResult:
    """
    Outcome of one orchestrated chat call.

    Exactly one of `text` and `reason` is set. `cached` marks results served
    from a cache without any provider interaction.
    """

    text: str | None = None
    reason: FailureReason | None = None
    detail: str | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.text is not None

    @staticmethod
    def success(text: str, *, cached: bool = False) -> "ChatResult":
        return ChatResult(text=text, cached=cached)

    @staticmethod
    def failure(reason: FailureReason, detail: str | None = None) -> "ChatResult":
        return ChatResult(reason=reason, detail=detail)

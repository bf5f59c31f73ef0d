"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed error taxonomy for the chat call path.
"""

from __future__ import annotations

from enum import Enum


class FailureReason(str, Enum):
    """Machine-readable reason attached to every failed chat result."""

    INVALID_INPUT = "invalid_input"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    CIRCUIT_OPEN = "circuit_open"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    VALIDATION_FAILED = "validation_failed"


class LLMError(Exception):
    """Base error for bfhllm runtime failures."""

    reason: FailureReason = FailureReason.API_ERROR


class LLMInvalidInputError(LLMError):
    """Raised for empty/malformed prompts or unrecognized response shapes."""

    reason = FailureReason.INVALID_INPUT


class LLMProviderUnavailableError(LLMError):
    """Raised when the named provider is unknown or lacks credentials."""

    reason = FailureReason.PROVIDER_UNAVAILABLE


class LLMCircuitOpenError(LLMError):
    """Raised when the breaker rejects a call without touching the network."""

    reason = FailureReason.CIRCUIT_OPEN


class LLMTimeoutError(LLMError):
    """Raised when a provider call exceeds its timeout."""

    reason = FailureReason.TIMEOUT


class LLMAPIError(LLMError):
    """Raised for non-timeout transport or provider failures."""

    reason = FailureReason.API_ERROR


class LLMInvalidResponseError(LLMError):
    """Raised when the sanitizer rejects provider output."""

    reason = FailureReason.VALIDATION_FAILED


class LLMConfigurationError(ValueError):
    """
    Raised for malformed configuration passed by the embedding application.

    Unlike `LLMError` subclasses this is never converted into a chat result.
    """

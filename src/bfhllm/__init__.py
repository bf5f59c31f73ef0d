"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: __init__.py.
"""

from __future__ import annotations

from .cache import (
    CacheStats,
    ProcessCache,
    ResponseCache,
    SessionCache,
    TTLCache,
    generate_cache_key,
    session_cache,
)
from .chat import ChatOrchestrator
from .errors import (
    FailureReason,
    LLMAPIError,
    LLMCircuitOpenError,
    LLMConfigurationError,
    LLMError,
    LLMInvalidInputError,
    LLMInvalidResponseError,
    LLMProviderUnavailableError,
    LLMTimeoutError,
)
from .prompts import build_prompt, create_structured_prompt, interpolate
from .providers import GeminiProvider, LLMProvider, LLMProviderError, ProviderRegistry
from .rag import (
    KnowledgeRetriever,
    KnowledgeStoreLoader,
    RetrievedChunk,
    chat_with_rag,
    format_rag_context,
    query_knowledge,
)
from .runtime import (
    CachePolicy,
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitBreakerStatus,
    ProviderGateway,
    TimeoutPolicy,
)
from .sanitizer import ResponseSanitizer
from .settings import LLMConfigStore, LLMSettings
from .spc import (
    SpcContext,
    SpcMetadata,
    determine_target_comparison,
    extract_spc_metadata,
    map_chart_type_danish,
    spc_suggestion,
)
from .types import ChatResult, PlainText, ProviderResponse, Structured

__all__ = [
    "ChatOrchestrator",
    "ChatResult",
    "FailureReason",
    "LLMSettings",
    "LLMConfigStore",
    "TimeoutPolicy",
    "CircuitBreakerPolicy",
    "CachePolicy",
    "CircuitBreaker",
    "CircuitBreakerStatus",
    "ProviderGateway",
    "LLMProvider",
    "LLMProviderError",
    "ProviderRegistry",
    "GeminiProvider",
    "PlainText",
    "Structured",
    "ProviderResponse",
    "ResponseCache",
    "CacheStats",
    "TTLCache",
    "ProcessCache",
    "SessionCache",
    "session_cache",
    "generate_cache_key",
    "ResponseSanitizer",
    "interpolate",
    "build_prompt",
    "create_structured_prompt",
    "RetrievedChunk",
    "KnowledgeRetriever",
    "KnowledgeStoreLoader",
    "query_knowledge",
    "format_rag_context",
    "chat_with_rag",
    "SpcContext",
    "SpcMetadata",
    "map_chart_type_danish",
    "extract_spc_metadata",
    "determine_target_comparison",
    "spc_suggestion",
    "LLMError",
    "LLMInvalidInputError",
    "LLMProviderUnavailableError",
    "LLMCircuitOpenError",
    "LLMTimeoutError",
    "LLMAPIError",
    "LLMInvalidResponseError",
    "LLMConfigurationError",
]

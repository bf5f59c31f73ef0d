"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: providers/__init__.py.
"""

from .contracts import LLMProvider
from .gemini import GeminiProvider
from .registry import LLMProviderError, ProviderRegistry

__all__ = [
    "LLMProvider",
    "LLMProviderError",
    "ProviderRegistry",
    "GeminiProvider",
]

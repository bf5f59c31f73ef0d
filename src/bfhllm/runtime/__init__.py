"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .circuit_breaker import CircuitBreaker, CircuitBreakerStatus
from .contracts import CachePolicy, CircuitBreakerPolicy, TimeoutPolicy
from .gateway import ProviderGateway

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerStatus",
    "ProviderGateway",
    "TimeoutPolicy",
    "CircuitBreakerPolicy",
    "CachePolicy",
]

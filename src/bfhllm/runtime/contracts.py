"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for guarded LLM execution.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Timeout semantics for one provider call."""

    request_timeout_s: float | None = 10.0


@dataclass(frozen=True, slots=True)
class CircuitBreakerPolicy:
    """Consecutive failure policy with lazy time-based recovery."""

    enabled: bool = True
    failure_threshold: int = 5
    reset_timeout_s: float = 300.0


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Response cache controls."""

    enabled: bool = True
    ttl_s: float = 3600.0

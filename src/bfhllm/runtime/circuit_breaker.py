"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/circuit_breaker.py.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .contracts import CircuitBreakerPolicy

logger = logging.getLogger("bfhllm.runtime.breaker")


@dataclass(frozen=True, slots=True)
class CircuitBreakerStatus:
    """Read-only breaker snapshot for observability."""

    is_open: bool
    failure_count: int
    last_failure_at: float | None


@dataclass(slots=True)
class _State:
    """Data type for state."""

    failures: int = 0
    last_failure_at: float | None = None
    last_failure_mono: float | None = None
    is_open: bool = False


class CircuitBreaker:
    """
    Thread-safe consecutive-failure breaker for one provider.

    A single success closes the breaker. Recovery after the cool-down is
    evaluated lazily by `is_open()`. There is no half-open trial budget.
    """

    def __init__(
        self,
        policy: CircuitBreakerPolicy | None = None,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.policy = policy or CircuitBreakerPolicy()
        self.name = name
        # Cool-down uses `clock`; `wall_clock` only stamps `status().last_failure_at`.
        self._clock = clock
        self._wall_clock = wall_clock
        self._state = _State()
        self._lock = threading.Lock()

    def is_open(self) -> bool:
        """
        Return whether calls must be rejected right now.

        This is not side-effect free: when the breaker is open and more than
        `reset_timeout_s` has passed since the last failure, it transitions
        to closed and resets the failure count before returning `False`.
        The transition runs under the same lock as the writers.
        """
        with self._lock:
            state = self._state
            if not state.is_open:
                return False
            if state.last_failure_mono is not None:
                elapsed = self._clock() - state.last_failure_mono
                if elapsed > self.policy.reset_timeout_s:
                    state.is_open = False
                    state.failures = 0
                    logger.info(
                        "Circuit breaker '%s' closed after %.1fs cool-down",
                        self.name,
                        elapsed,
                    )
                    return False
            return True

    def record_failure(self) -> None:
        with self._lock:
            state = self._state
            state.failures += 1
            state.last_failure_at = self._wall_clock()
            state.last_failure_mono = self._clock()
            if state.failures >= self.policy.failure_threshold and not state.is_open:
                state.is_open = True
                logger.warning(
                    "Circuit breaker '%s' opened after %d failures",
                    self.name,
                    state.failures,
                )

    def record_success(self) -> None:
        with self._lock:
            self._state.failures = 0
            self._state.is_open = False

    def status(self) -> CircuitBreakerStatus:
        with self._lock:
            return CircuitBreakerStatus(
                is_open=self._state.is_open,
                failure_count=self._state.failures,
                last_failure_at=self._state.last_failure_at,
            )

    def reset(self) -> None:
        """Force the breaker closed regardless of timing."""
        with self._lock:
            self._state = _State()
        logger.info("Circuit breaker '%s' manually reset", self.name)

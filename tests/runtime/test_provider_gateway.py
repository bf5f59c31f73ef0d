from __future__ import annotations

import asyncio

import pytest

from bfhllm.errors import (
    LLMAPIError,
    LLMCircuitOpenError,
    LLMProviderUnavailableError,
    LLMTimeoutError,
)
from bfhllm.runtime import CircuitBreaker, CircuitBreakerPolicy, ProviderGateway, TimeoutPolicy


class _Provider:
    provider_id = "fake"

    def __init__(self, *, result="ok", error: Exception | None = None, delay_s: float = 0.0):
        self.result = result
        self.error = error
        self.delay_s = delay_s
        self.calls = 0

    def validate_setup(self) -> bool:
        return True

    async def call_api(self, prompt, model, timeout_s):
        _ = prompt
        _ = model
        _ = timeout_s
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return self.result

    def extract_text(self, raw):
        return raw


def run_async(coro):
    return asyncio.run(coro)


def _policy(timeout_s: float = 1.0) -> TimeoutPolicy:
    return TimeoutPolicy(request_timeout_s=timeout_s)


def test_success_returns_raw_and_heals_breaker():
    provider = _Provider(result={"text": "hello"})
    breaker = CircuitBreaker(CircuitBreakerPolicy(failure_threshold=5))
    breaker.record_failure()
    gateway = ProviderGateway(provider, breaker)

    raw = run_async(gateway.call("hi", model="m", timeout=_policy()))

    assert raw == {"text": "hello"}
    assert breaker.status().failure_count == 0


def test_open_breaker_rejects_without_calling_provider():
    provider = _Provider()
    breaker = CircuitBreaker(CircuitBreakerPolicy(failure_threshold=1))
    breaker.record_failure()
    gateway = ProviderGateway(provider, breaker)

    with pytest.raises(LLMCircuitOpenError):
        run_async(gateway.call("hi", model="m", timeout=_policy()))

    assert provider.calls == 0
    assert breaker.status().failure_count == 1


def test_timeout_records_exactly_one_failure():
    provider = _Provider(delay_s=1.0)
    breaker = CircuitBreaker()
    gateway = ProviderGateway(provider, breaker)

    with pytest.raises(LLMTimeoutError) as exc_info:
        run_async(gateway.call("hi", model="m", timeout=_policy(0.05)))

    assert isinstance(exc_info.value.__cause__, TimeoutError)
    assert breaker.status().failure_count == 1


def test_provider_error_maps_to_api_error():
    provider = _Provider(error=RuntimeError("quota exceeded"))
    breaker = CircuitBreaker()
    gateway = ProviderGateway(provider, breaker)

    with pytest.raises(LLMAPIError, match="quota exceeded"):
        run_async(gateway.call("hi", model="m", timeout=_policy()))

    assert breaker.status().failure_count == 1


def test_unavailable_provider_is_not_a_breaker_failure():
    provider = _Provider(error=LLMProviderUnavailableError("missing sdk"))
    breaker = CircuitBreaker()
    gateway = ProviderGateway(provider, breaker)

    with pytest.raises(LLMProviderUnavailableError):
        run_async(gateway.call("hi", model="m", timeout=_policy()))

    assert breaker.status().failure_count == 0


def test_disabled_breaker_is_bypassed():
    provider = _Provider(error=RuntimeError("boom"))
    breaker = CircuitBreaker(CircuitBreakerPolicy(failure_threshold=1))
    breaker.record_failure()
    gateway = ProviderGateway(provider, breaker, breaker_enabled=False)

    with pytest.raises(LLMAPIError):
        run_async(gateway.call("hi", model="m", timeout=_policy()))

    assert provider.calls == 1
    assert breaker.status().failure_count == 1

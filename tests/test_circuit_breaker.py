"""
Tests for the per-dependency circuit breaker, alone and behind the resilient client.
"""

from __future__ import annotations

import httpx
import pytest

from claimchat.application.exceptions import CircuitOpenError, DownstreamRejectedError
from claimchat.infrastructure.http.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState
from claimchat.infrastructure.http.resilient_client import ResilientClient


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _open_breaker(clock: FakeClock, threshold: int = 5) -> CircuitBreaker:
    breaker = CircuitBreaker("journey-matcher", threshold=threshold, cooldown_seconds=30.0, clock=clock)
    for _ in range(threshold):
        breaker.before_call()
        breaker.record_failure()
    return breaker


def test_opens_after_threshold_consecutive_failures():
    clock = FakeClock()
    breaker = CircuitBreaker("journey-matcher", threshold=5, cooldown_seconds=30.0, clock=clock)

    for _ in range(4):
        breaker.before_call()
        breaker.record_failure()
    assert breaker.state == CircuitState.CLOSED

    breaker.before_call()
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN
    assert breaker.snapshot().failure_count == 5

    with pytest.raises(CircuitOpenError) as exc_info:
        breaker.before_call()
    assert exc_info.value.code == "CIRCUIT_OPEN"


def test_success_in_closed_resets_failure_count():
    breaker = CircuitBreaker("svc", threshold=5, clock=FakeClock())
    for _ in range(4):
        breaker.record_failure()
    breaker.record_success()
    for _ in range(4):
        breaker.record_failure()

    assert breaker.state == CircuitState.CLOSED
    assert breaker.snapshot().failure_count == 4


def test_exactly_one_trial_call_after_cooldown():
    clock = FakeClock()
    breaker = _open_breaker(clock)

    # calls during OPEN are rejected and do not earn extra trial calls
    for _ in range(3):
        with pytest.raises(CircuitOpenError):
            breaker.before_call()

    clock.advance(30.0)
    assert breaker.before_call() is True
    assert breaker.state == CircuitState.HALF_OPEN

    with pytest.raises(CircuitOpenError):
        breaker.before_call()


def test_trial_call_success_closes_circuit():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(31.0)

    breaker.before_call()
    breaker.record_success()

    assert breaker.state == CircuitState.CLOSED
    assert breaker.snapshot().failure_count == 0
    assert breaker.before_call() is False


def test_trial_call_failure_reopens_and_restarts_cooldown():
    clock = FakeClock()
    breaker = _open_breaker(clock)
    clock.advance(30.0)

    breaker.before_call()
    breaker.record_failure()
    assert breaker.state == CircuitState.OPEN

    clock.advance(15.0)
    with pytest.raises(CircuitOpenError):
        breaker.before_call()

    clock.advance(15.0)
    assert breaker.before_call() is True


def test_registry_holds_one_breaker_per_dependency():
    registry = CircuitBreakerRegistry(threshold=2, clock=FakeClock())

    first = registry.get("eligibility-engine")
    assert registry.get("eligibility-engine") is first
    assert registry.get("delay-tracker") is not first

    first.record_failure()
    first.record_failure()
    snapshot = registry.snapshot()
    assert snapshot["eligibility-engine"].state == CircuitState.OPEN
    assert snapshot["delay-tracker"].state == CircuitState.CLOSED


def test_sixth_call_rejected_without_network_then_single_trial_call_reaches_dependency():
    clock = FakeClock()
    breaker = CircuitBreaker("journey-matcher", threshold=5, cooldown_seconds=30.0, clock=clock)
    requests: list[httpx.Request] = []
    healthy = {"value": False}

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if healthy["value"]:
            return httpx.Response(200, json={"routes": []})
        return httpx.Response(400, json={"error": "bad request"})

    client = ResilientClient(
        "journey-matcher",
        "http://journey-matcher",
        breaker,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )

    for _ in range(5):
        with pytest.raises(DownstreamRejectedError):
            client.get("/routes", correlation_id="corr-1")
    assert len(requests) == 5

    with pytest.raises(CircuitOpenError):
        client.get("/routes", correlation_id="corr-1")
    assert len(requests) == 5

    clock.advance(30.0)
    healthy["value"] = True
    assert client.get("/routes", correlation_id="corr-1") == {"routes": []}
    assert len(requests) == 6
    assert breaker.state == CircuitState.CLOSED


def _flaky_client(breaker: CircuitBreaker, handler) -> ResilientClient:
    return ResilientClient(
        "journey-matcher",
        "http://journey-matcher",
        breaker,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=lambda _: None,
    )


def test_unexpected_error_during_half_open_reopens_instead_of_wedging():
    clock = FakeClock()
    breaker = _open_breaker(clock, threshold=1)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"routes": []})

    client = _flaky_client(breaker, handler)

    clock.advance(31.0)
    # httpx refuses non-ASCII header values before anything is sent
    with pytest.raises(UnicodeEncodeError):
        client.get("/routes", correlation_id="caf\xe9")
    assert breaker.state == CircuitState.OPEN
    assert requests == []

    clock.advance(31.0)
    assert client.get("/routes", correlation_id="corr-1") == {"routes": []}
    assert len(requests) == 1
    assert breaker.state == CircuitState.CLOSED


def test_non_http_exception_from_transport_counts_as_failure():
    clock = FakeClock()
    breaker = CircuitBreaker("journey-matcher", threshold=2, cooldown_seconds=30.0, clock=clock)

    def handler(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("transport exploded")

    client = _flaky_client(breaker, handler)

    for _ in range(2):
        with pytest.raises(RuntimeError):
            client.get("/routes", correlation_id="corr-1")

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(CircuitOpenError):
        client.get("/routes", correlation_id="corr-1")

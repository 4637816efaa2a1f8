"""
Tests for timeout, retry and backoff behaviour of the resilient client.
"""

from __future__ import annotations

import httpx
import pytest

from claimchat.application.exceptions import (
    DownstreamRejectedError,
    DownstreamTimeoutError,
    DownstreamUnavailableError,
)
from claimchat.infrastructure.http.circuit_breaker import CircuitBreaker, CircuitState
from claimchat.infrastructure.http.resilient_client import CORRELATION_HEADER, ResilientClient, RetryPolicy


def _client(handler, breaker: CircuitBreaker | None = None, retries: int = 3):
    sleeps: list[float] = []
    client = ResilientClient(
        "journey-matcher",
        "http://journey-matcher/",
        breaker or CircuitBreaker("journey-matcher", threshold=100),
        timeout_seconds=15.0,
        retry_policy=RetryPolicy(retries=retries, base_delay_seconds=1.0),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
    )
    return client, sleeps


def test_backoff_doubles_per_attempt():
    policy = RetryPolicy(retries=3, base_delay_seconds=1.0)
    assert [policy.delay_for(attempt) for attempt in (1, 2, 3)] == [1.0, 2.0, 4.0]
    assert policy.max_attempts == 4

    slow = RetryPolicy(retries=2, base_delay_seconds=0.5)
    assert [slow.delay_for(attempt) for attempt in (1, 2)] == [0.5, 1.0]


def test_5xx_retried_up_to_retries_then_raises():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    client, sleeps = _client(handler)
    with pytest.raises(DownstreamUnavailableError) as exc_info:
        client.get("/routes")

    assert len(calls) == 4
    assert sleeps == [1.0, 2.0, 4.0]
    assert exc_info.value.status_code == 503
    assert exc_info.value.dependency == "journey-matcher"


def test_4xx_is_never_retried():
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404, json={"error": "not found"})

    client, sleeps = _client(handler)
    with pytest.raises(DownstreamRejectedError) as exc_info:
        client.get("/routes")

    assert len(calls) == 1
    assert sleeps == []
    assert exc_info.value.status_code == 404


def test_network_error_retried_until_success():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"routes": [{"legs": []}]})

    client, sleeps = _client(handler)
    body = client.get("/routes")

    assert body == {"routes": [{"legs": []}]}
    assert attempts["count"] == 3
    assert sleeps == [1.0, 2.0]


def test_timeout_raises_econnaborted_after_all_attempts():
    attempts = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["count"] += 1
        raise httpx.ReadTimeout("timed out", request=request)

    client, sleeps = _client(handler)
    with pytest.raises(DownstreamTimeoutError) as exc_info:
        client.get("/routes")

    assert exc_info.value.code == "ECONNABORTED"
    assert attempts["count"] == 4
    assert len(sleeps) == 3


def test_correlation_header_params_and_timeout_are_sent():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client, _ = _client(handler)
    client.get("/routes", params={"from": "PAD", "to": "BRI"}, correlation_id="corr-42", timeout_seconds=2.0)
    client.post("/eligibility", json={"journey_id": "j-1"}, correlation_id="corr-43")

    get_request, post_request = seen
    assert get_request.headers[CORRELATION_HEADER] == "corr-42"
    assert get_request.url.path == "/routes"
    assert get_request.url.params["from"] == "PAD"
    assert get_request.extensions["timeout"]["read"] == 2.0
    assert post_request.method == "POST"
    assert post_request.headers[CORRELATION_HEADER] == "corr-43"
    assert post_request.extensions["timeout"]["read"] == 15.0


def test_logical_call_counts_as_one_breaker_failure():
    breaker = CircuitBreaker("journey-matcher", threshold=5)
    client, _ = _client(lambda request: httpx.Response(500), breaker=breaker)

    with pytest.raises(DownstreamUnavailableError):
        client.get("/routes")

    assert breaker.snapshot().failure_count == 1
    assert breaker.state == CircuitState.CLOSED


def test_half_open_trial_call_is_a_single_attempt():
    now = {"t": 0.0}
    breaker = CircuitBreaker("journey-matcher", threshold=1, cooldown_seconds=30.0, clock=lambda: now["t"])
    breaker.record_failure()
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(502)

    client, sleeps = _client(handler, breaker=breaker)
    now["t"] = 30.0
    with pytest.raises(DownstreamUnavailableError):
        client.get("/routes")

    assert len(calls) == 1
    assert sleeps == []
    assert breaker.state == CircuitState.OPEN


def test_empty_body_returns_none():
    client, _ = _client(lambda request: httpx.Response(204))
    assert client.post("/tracking", json={}) is None

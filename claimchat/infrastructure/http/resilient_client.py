from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from claimchat.application.exceptions import (
    DownstreamError,
    DownstreamRejectedError,
    DownstreamTimeoutError,
    DownstreamUnavailableError,
)
from claimchat.infrastructure.http.circuit_breaker import CircuitBreaker

CORRELATION_HEADER = "X-Correlation-ID"


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 3
    base_delay_seconds: float = 1.0

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows `attempt` (1-based): base * 2^(attempt-1)."""
        return self.base_delay_seconds * (2 ** (attempt - 1))


class ResilientClient:
    """
    GET/POST to one sibling service with a deadline, retry with exponential backoff
    and a shared circuit breaker.

    Network errors, timeouts and 5xx are retried; 4xx fails immediately. One logical
    call counts as one breaker failure no matter how many attempts it made.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        breaker: CircuitBreaker,
        timeout_seconds: float = 15.0,
        retry_policy: RetryPolicy | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self._base_url = base_url.rstrip("/")
        self._breaker = breaker
        self._timeout = timeout_seconds
        self._retry = retry_policy or RetryPolicy()
        self._client = client or httpx.Client()
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        return self._execute("GET", path, params=params, correlation_id=correlation_id, timeout_seconds=timeout_seconds)

    def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        return self._execute("POST", path, json=json, correlation_id=correlation_id, timeout_seconds=timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def _execute(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        # raises CircuitOpenError before any I/O
        is_trial = self._breaker.before_call()
        max_attempts = 1 if is_trial else self._retry.max_attempts

        url = f"{self._base_url}{path}"
        headers = {CORRELATION_HEADER: correlation_id} if correlation_id else {}
        timeout = timeout_seconds if timeout_seconds is not None else self._timeout

        try:
            return self._run_attempts(method, url, params, json, headers, timeout, correlation_id, max_attempts)
        except DownstreamError:
            raise
        except BaseException:
            # every admitted call settles the breaker, trial calls included
            self._breaker.record_failure()
            self._logger.error(
                "Downstream call aborted",
                exc_info=True,
                extra={"dependency": self.name, "correlation_id": correlation_id},
            )
            raise

    def _run_attempts(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
        correlation_id: str | None,
        max_attempts: int,
    ) -> Any:
        for attempt in range(1, max_attempts + 1):
            outcome = self._attempt(method, url, params, json, headers, timeout)
            if isinstance(outcome, _Success):
                self._breaker.record_success()
                return outcome.body
            error = outcome

            if not error.retryable or attempt >= max_attempts:
                self._breaker.record_failure()
                self._logger.error(
                    "Downstream call failed",
                    extra={
                        "dependency": self.name,
                        "correlation_id": correlation_id,
                        "attempt": attempt,
                        "reason": str(error),
                    },
                )
                raise error

            delay = self._retry.delay_for(attempt)
            self._logger.warning(
                "Retrying",
                extra={
                    "dependency": self.name,
                    "correlation_id": correlation_id,
                    "attempt": attempt + 1,
                    "delay_seconds": delay,
                    "reason": str(error),
                },
            )
            self._sleep(delay)

        raise AssertionError("unreachable")

    def _attempt(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
    ) -> _Success | DownstreamError:
        try:
            response = self._client.request(method, url, params=params, json=json, headers=headers, timeout=timeout)
        except httpx.TimeoutException as exc:
            error: DownstreamError = DownstreamTimeoutError(f"{method} {url} timed out after {timeout}s", self.name)
            error.__cause__ = exc
            return error
        except httpx.TransportError as exc:
            error = DownstreamUnavailableError(f"{method} {url} network error: {exc}", dependency=self.name)
            error.__cause__ = exc
            return error
        except httpx.HTTPError as exc:
            error = DownstreamError(f"{method} {url} failed: {exc}", dependency=self.name)
            error.__cause__ = exc
            return error

        if response.status_code >= 500:
            return DownstreamUnavailableError(
                f"{method} {url} returned {response.status_code}",
                dependency=self.name,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            return DownstreamRejectedError(
                f"{method} {url} returned {response.status_code}",
                dependency=self.name,
                status_code=response.status_code,
            )

        if not response.content:
            return _Success(None)
        try:
            return _Success(response.json())
        except ValueError as exc:
            error = DownstreamError(f"{method} {url} returned malformed JSON", dependency=self.name)
            error.__cause__ = exc
            return error


@dataclass(frozen=True)
class _Success:
    body: Any

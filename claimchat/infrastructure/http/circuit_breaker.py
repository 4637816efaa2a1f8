from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from claimchat.application.exceptions import CircuitOpenError


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True)
class CircuitBreakerSnapshot:
    state: CircuitState
    failure_count: int
    last_failure_time: float | None


class CircuitBreaker:
    """
    Failure isolation for one logical downstream dependency.

    CLOSED counts consecutive failed calls; at `threshold` the circuit opens and
    every call is rejected until `cooldown_seconds` have passed since the last
    failure. The first call after that becomes the single HALF_OPEN trial call:
    success closes the circuit, failure re-opens it and restarts the cooldown.
    State lives in memory only and resets with the process.
    """

    def __init__(
        self,
        name: str,
        threshold: int = 5,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.name = name
        self._threshold = threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: float | None = None
        self._trial_in_flight = False
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def snapshot(self) -> CircuitBreakerSnapshot:
        with self._lock:
            return CircuitBreakerSnapshot(self._state, self._failure_count, self._last_failure_time)

    def before_call(self) -> bool:
        """
        Admit or reject a call. Returns True when the admitted call is the HALF_OPEN trial call.
        Raises CircuitOpenError when the call must not reach the dependency.
        """
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return False

            if self._state == CircuitState.OPEN:
                elapsed = self._clock() - (self._last_failure_time or 0.0)
                if elapsed < self._cooldown:
                    raise CircuitOpenError(self.name)
                self._state = CircuitState.HALF_OPEN
                self._trial_in_flight = True
                self._logger.info(
                    "Circuit breaker transitioned to HALF_OPEN",
                    extra={"dependency": self.name, "reason": f"cooldown {self._cooldown}s elapsed"},
                )
                return True

            # HALF_OPEN: only one trial call at a time
            if self._trial_in_flight:
                raise CircuitOpenError(self.name)
            self._trial_in_flight = True
            return True

    def record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._logger.info("Circuit breaker closed after successful trial call", extra={"dependency": self.name})
            self._state = CircuitState.CLOSED
            self._failure_count = 0
            self._trial_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()
            self._trial_in_flight = False

            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                self._logger.warning("Circuit breaker re-opened after failed trial call", extra={"dependency": self.name})
            elif self._state == CircuitState.CLOSED and self._failure_count >= self._threshold:
                self._state = CircuitState.OPEN
                self._logger.warning(
                    "Circuit breaker opened",
                    extra={"dependency": self.name, "reason": f"{self._failure_count} consecutive failures"},
                )


class CircuitBreakerRegistry:
    """Process-wide owner of one breaker per dependency name."""

    def __init__(
        self,
        threshold: int = 5,
        cooldown_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> CircuitBreaker:
        with self._lock:
            if name not in self._breakers:
                self._breakers[name] = CircuitBreaker(
                    name, threshold=self._threshold, cooldown_seconds=self._cooldown, clock=self._clock
                )
            return self._breakers[name]

    def snapshot(self) -> dict[str, CircuitBreakerSnapshot]:
        with self._lock:
            breakers = dict(self._breakers)
        return {name: breaker.snapshot() for name, breaker in breakers.items()}

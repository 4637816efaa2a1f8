class DownstreamError(RuntimeError):
    """Raised when a sibling service call fails after the resilience policy gave up."""

    def __init__(
        self,
        message: str,
        dependency: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.dependency = dependency
        self.status_code = status_code
        self.code = code

    @property
    def retryable(self) -> bool:
        return False


class DownstreamTimeoutError(DownstreamError):
    """Raised when a call exceeded its deadline on every attempt."""

    def __init__(self, message: str, dependency: str | None = None) -> None:
        super().__init__(message, dependency=dependency, code="ECONNABORTED")

    @property
    def retryable(self) -> bool:
        return True


class DownstreamUnavailableError(DownstreamError):
    """Raised on network errors and HTTP 5xx responses."""

    @property
    def retryable(self) -> bool:
        return True


class DownstreamRejectedError(DownstreamError):
    """Raised on HTTP 4xx responses (malformed request, never retried)."""
    pass


class CircuitOpenError(DownstreamError):
    """Raised without contacting the dependency while its circuit is open."""

    def __init__(self, dependency: str | None = None) -> None:
        super().__init__(f"Circuit breaker is OPEN for {dependency}", dependency=dependency, code="CIRCUIT_OPEN")


class HandlerNotRegisteredError(LookupError):
    """Raised when no handler exists for an FSM state (a wiring bug, never user input)."""
    pass


class MissingContextError(RuntimeError):
    """Raised when state_data lacks keys a handler depends on (corrupted session)."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required session context: {', '.join(missing)}")
        self.missing = missing


class VerificationError(RuntimeError):
    """Raised when the one-time-code provider fails."""
    pass


class MessagingError(RuntimeError):
    """Raised when an outbound WhatsApp message could not be handed to the provider."""
    pass

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

from claimchat.application.exceptions import (
    CircuitOpenError,
    DownstreamError,
    DownstreamTimeoutError,
    MissingContextError,
)
from claimchat.application.ports.eligibility import EligibilityPort, TrackingPort
from claimchat.application.ports.route_lookup import RouteLookupPort
from claimchat.application.ports.station_lookup import StationLookupPort
from claimchat.application.ports.user_directory import UserDirectoryPort
from claimchat.application.ports.verification import VerificationPort
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.outbox_event import OutboxEvent
from claimchat.domain.entities.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerContext:
    identity: str
    text: str
    message_id: str
    current_state: FSMState
    state_data: dict[str, Any]
    correlation_id: str
    media_url: str | None = None
    user: User | None = None

    @property
    def command(self) -> str:
        return self.text.strip().upper()


@dataclass
class HandlerResult:
    """
    reply: text sent back on the channel.
    next_state: None keeps the current state.
    state_data: None keeps the stored data unchanged; a dict replaces it.
    events: outbox events committed together with the transition.
    clear_state: delete the conversation record (logout, opt-out, lockout).
    """

    reply: str
    next_state: FSMState | None = None
    state_data: dict[str, Any] | None = None
    events: list[OutboxEvent] = field(default_factory=list)
    clear_state: bool = False


@dataclass
class HandlerDeps:
    route_lookup: RouteLookupPort
    stations: StationLookupPort
    eligibility: EligibilityPort
    tracking: TrackingPort
    users: UserDirectoryPort
    verification: VerificationPort
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo("Europe/London"))
    terms_url: str = "https://railrepay.co.uk/terms"
    max_claim_age_days: int = 90
    otp_max_attempts: int = 3
    clock: Callable[[], datetime] | None = None

    def now(self) -> datetime:
        if self.clock is not None:
            return self.clock().astimezone(self.timezone)
        return datetime.now(self.timezone)


Handler = Callable[[HandlerContext, HandlerDeps], HandlerResult]


SESSION_ERROR_REPLY = "Sorry, I lost track of your claim details. Let's get you back on track."


def missing_context_result(ctx: HandlerContext, error: MissingContextError) -> HandlerResult:
    logger.error(
        "Missing session context",
        extra={
            "correlation_id": ctx.correlation_id,
            "identity": ctx.identity,
            "state": ctx.current_state.value,
            "reason": ", ".join(error.missing),
        },
    )
    return HandlerResult(reply=SESSION_ERROR_REPLY, next_state=FSMState.ERROR)


ROUTE_LOOKUP_TIMEOUT_REPLY = "Route lookup is taking longer than expected. Please try again in a moment."
UNAVAILABLE_REPLY = "This service is temporarily unavailable. Please try again in a few minutes."


def route_lookup_failure_reply(error: DownstreamError) -> str:
    """User-facing text for a failed route lookup. Never includes status codes or service names."""
    if isinstance(error, DownstreamTimeoutError):
        return ROUTE_LOOKUP_TIMEOUT_REPLY
    if isinstance(error, CircuitOpenError):
        return UNAVAILABLE_REPLY
    if error.status_code == 404:
        return "I couldn't find any trains for that route and time. Please check your stations and try again."
    return "Unable to find routes at this time. Please try again."

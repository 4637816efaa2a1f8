from __future__ import annotations

from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import WELCOME_BACK, WELCOME_BACK_UNVERIFIED, WELCOME_FIRST_TIME
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.outbox_event import new_event


def handle_start(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    """Entry point: register unknown numbers, resume verification, or greet verified users."""
    if ctx.user is None:
        user = deps.users.create(ctx.identity)
        event = new_event(
            "user",
            user.id,
            "user.registered",
            {
                "user_id": user.id,
                "phone_number": user.phone_number,
                "registered_at": user.created_at.isoformat(),
            },
            correlation_id=ctx.correlation_id,
            causation_id=ctx.message_id,
        )
        return HandlerResult(reply=WELCOME_FIRST_TIME, next_state=FSMState.AWAITING_TERMS, events=[event])

    if ctx.user.is_verified:
        return HandlerResult(reply=WELCOME_BACK, next_state=FSMState.AUTHENTICATED)

    return HandlerResult(reply=WELCOME_BACK_UNVERIFIED, next_state=FSMState.AWAITING_TERMS)

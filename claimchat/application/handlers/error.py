from __future__ import annotations

import logging

from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import ERROR_RECOVERY
from claimchat.domain.entities.conversation_state import FSMState

logger = logging.getLogger(__name__)


def handle_error(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    """Ignores the message and always recovers to AUTHENTICATED. Escalation events come from whoever moved here."""
    logger.info(
        "ERROR state reached, recovering",
        extra={
            "correlation_id": ctx.correlation_id,
            "identity": ctx.identity,
            "next_state": FSMState.AUTHENTICATED.value,
        },
    )
    return HandlerResult(reply=ERROR_RECOVERY, next_state=FSMState.AUTHENTICATED)

from __future__ import annotations

from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import JOURNEY_STATIONS
from claimchat.application.utils.date_parser import parse_journey_date
from claimchat.application.utils.state_helpers import merge_state_data
from claimchat.domain.entities.conversation_state import FSMState


def handle_journey_date(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    result = parse_journey_date(ctx.text, deps.now().date(), deps.max_claim_age_days)
    if not result.ok:
        return HandlerResult(
            reply=(
                f"{result.error}\n\n"
                "Please try again with a valid date like:\n"
                '• "today"\n• "yesterday"\n• "15 Nov"\n• "15/11/2024"'
            )
        )

    return HandlerResult(
        reply=f"Got it! Journey date: {result.value.strftime('%d/%m/%Y')}\n\n{JOURNEY_STATIONS}",
        next_state=FSMState.AWAITING_JOURNEY_STATIONS,
        state_data=merge_state_data(ctx.state_data, travelDate=result.value.isoformat()),
    )

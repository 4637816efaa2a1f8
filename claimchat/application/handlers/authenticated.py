from __future__ import annotations

import logging
import uuid

from claimchat.application.exceptions import DownstreamError
from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import JOURNEY_WHEN
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.eligibility import ClaimSummary

logger = logging.getLogger(__name__)

HELP_MENU = """Here's what I can help you with:

Commands:
• DELAY - Report a delayed journey
• STATUS - Check your claim status
• HELP - Show this menu
• LOGOUT - Sign out"""

UNKNOWN_COMMAND = """Sorry, I didn't understand that.

Try one of these commands:
• DELAY - Report a delayed journey
• STATUS - Check your claim status
• HELP - Get help
• LOGOUT - Sign out"""


def handle_authenticated(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    """Home state for verified users."""
    command = ctx.command

    if command in ("DELAY", "CLAIM"):
        # every claim starts from a fresh journey context
        journey_id = str(uuid.uuid4())
        return HandlerResult(
            reply="Great! Let's report your delayed journey.\n\n" + JOURNEY_WHEN.format(max_age_days=deps.max_claim_age_days),
            next_state=FSMState.AWAITING_JOURNEY_DATE,
            state_data={"journeyId": journey_id},
        )

    if command == "STATUS":
        return HandlerResult(reply=_claim_status(ctx, deps))

    if command in ("HELP", "MENU"):
        return HandlerResult(reply=HELP_MENU)

    if command == "LOGOUT":
        return HandlerResult(
            reply="You've been signed out. Thanks for using RailRepay!\n\nSend any message to start again. 👋",
            clear_state=True,
        )

    return HandlerResult(reply=UNKNOWN_COMMAND)


def _claim_status(ctx: HandlerContext, deps: HandlerDeps) -> str:
    if ctx.user is None:
        claims: list[ClaimSummary] = []
    else:
        try:
            claims = deps.eligibility.claim_status(ctx.user.id, ctx.correlation_id)
        except DownstreamError as e:
            logger.error(
                "Claim status lookup failed",
                extra={"correlation_id": ctx.correlation_id, "dependency": e.dependency, "reason": str(e)},
            )
            return "Sorry, I couldn't fetch your claims right now. Please try again in a few minutes."

    if not claims:
        return "Here's the status of your claims:\n\n(No active claims yet)\n\nReply DELAY to start a new claim, or HELP for more options."

    lines = ["Here's the status of your claims:", ""]
    for claim in claims:
        line = f"• {claim.travel_date or 'Unknown date'}: {claim.status}"
        if claim.compensation_amount:
            line += f" ({claim.compensation_amount})"
        lines.append(line)
    lines.append("")
    lines.append("Reply DELAY to start a new claim, or HELP for more options.")
    return "\n".join(lines)

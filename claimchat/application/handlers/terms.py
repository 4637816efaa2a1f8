from __future__ import annotations

import logging

from claimchat.application.exceptions import VerificationError
from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.utils.state_helpers import merge_state_data
from claimchat.domain.entities.conversation_state import FSMState

logger = logging.getLogger(__name__)

OTP_SENT = """Great! I've sent a verification code to your phone.

Please reply with the 6-digit code to verify your number.

(The code will arrive via SMS)"""


def handle_terms(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    command = ctx.command

    if command == "YES":
        try:
            deps.verification.start(ctx.identity)
        except VerificationError as e:
            logger.error(
                "Failed to start verification",
                extra={"correlation_id": ctx.correlation_id, "identity": ctx.identity, "reason": str(e)},
            )
            return HandlerResult(reply="Sorry, I couldn't send a verification code just now. Please reply YES to try again.")
        return HandlerResult(
            reply=OTP_SENT,
            next_state=FSMState.AWAITING_OTP,
            state_data=merge_state_data(ctx.state_data, verificationStarted=True, otpAttempts=0),
        )

    if command == "TERMS":
        return HandlerResult(
            reply=(
                "You can read our full terms and conditions here:\n\n"
                f"{deps.terms_url}\n\n"
                "Once you've read them, reply YES to accept and continue, or NO to opt out."
            )
        )

    if command == "NO":
        return HandlerResult(
            reply=(
                "I understand. You're welcome to come back anytime if you change your mind!\n\n"
                "Just send any message to start again. 👋"
            ),
            clear_state=True,
        )

    return HandlerResult(
        reply=(
            "Sorry, I didn't understand that.\n\n"
            "Please reply with:\n"
            "• YES - to accept terms and continue\n"
            "• NO - to opt out\n"
            "• TERMS - to read our terms and conditions"
        )
    )

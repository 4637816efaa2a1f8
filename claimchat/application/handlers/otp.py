from __future__ import annotations

import logging
import re

from claimchat.application.exceptions import VerificationError
from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import MAIN_MENU
from claimchat.application.utils.state_helpers import merge_state_data, without_keys
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.outbox_event import new_event

logger = logging.getLogger(__name__)

_OTP_RE = re.compile(r"^\d{6}$")

LOCKED_OUT = """Too many incorrect codes. For your security, verification has been reset.

Send any message to start again."""


def handle_otp(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    if ctx.user is None:
        # No user record to verify against; restart registration
        logger.warning(
            "OTP received without a user record",
            extra={"correlation_id": ctx.correlation_id, "identity": ctx.identity},
        )
        return HandlerResult(reply="Let's start again. Send any message to begin.", clear_state=True)

    command = ctx.command
    if command == "RESEND":
        try:
            deps.verification.start(ctx.identity)
        except VerificationError as e:
            logger.error(
                "Failed to resend verification",
                extra={"correlation_id": ctx.correlation_id, "identity": ctx.identity, "reason": str(e)},
            )
            return HandlerResult(reply="Sorry, I couldn't send a new code just now. Please reply RESEND to try again.")
        return HandlerResult(
            reply=(
                "I've sent a new verification code to your phone.\n\n"
                "Please reply with the 6-digit code to verify your number."
            ),
            state_data=merge_state_data(ctx.state_data, otpAttempts=0, verificationResent=True),
        )

    code = ctx.text.strip()
    if _OTP_RE.match(code):
        try:
            verified = deps.verification.check(ctx.identity, code)
        except VerificationError as e:
            logger.error(
                "Verification check failed",
                extra={"correlation_id": ctx.correlation_id, "identity": ctx.identity, "reason": str(e)},
            )
            return HandlerResult(reply="Sorry, I couldn't check your code just now. Please send it again.")
        if verified:
            return _verified(ctx, deps)

    attempts = int(ctx.state_data.get("otpAttempts") or 0) + 1
    if attempts >= deps.otp_max_attempts:
        logger.warning(
            "OTP attempts exhausted",
            extra={"correlation_id": ctx.correlation_id, "identity": ctx.identity, "attempt": attempts},
        )
        return HandlerResult(reply=LOCKED_OUT, clear_state=True)

    if _OTP_RE.match(code):
        reply = "That code isn't right. Please check it and try again.\n\nOr reply RESEND to get a new code."
    else:
        reply = "Invalid code format. Please enter the 6-digit code sent to your phone.\n\nOr reply RESEND to get a new code."
    return HandlerResult(reply=reply, state_data=merge_state_data(ctx.state_data, otpAttempts=attempts))


def _verified(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    user = deps.users.mark_verified(ctx.user.id)
    event = new_event(
        "user",
        user.id,
        "user.verified",
        {
            "user_id": user.id,
            "phone_number": user.phone_number,
            "verified_at": user.verified_at.isoformat() if user.verified_at else None,
        },
        correlation_id=ctx.correlation_id,
        causation_id=ctx.message_id,
    )
    return HandlerResult(
        reply=(
            "✓ Phone verified successfully!\n\n"
            "You're all set up and ready to start claiming for delayed journeys.\n\n"
            f"What would you like to do?\n\n{MAIN_MENU}"
        ),
        next_state=FSMState.AUTHENTICATED,
        state_data=without_keys(ctx.state_data, "otpAttempts", "verificationStarted", "verificationResent"),
        events=[event],
    )

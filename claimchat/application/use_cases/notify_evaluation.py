from __future__ import annotations

import enum
import logging
import uuid

from claimchat.application.dto.evaluation_event import EvaluationCompletedDTO
from claimchat.application.exceptions import MessagingError
from claimchat.application.ports.conversation_store import ConversationStorePort
from claimchat.application.ports.messaging import MessagingPort
from claimchat.application.ports.user_directory import UserDirectoryPort

_IDEMPOTENCY_PREFIX = "evaluation.completed:"


class NotificationOutcome(str, enum.Enum):
    SENT = "sent"
    DUPLICATE = "duplicate"
    USER_NOT_FOUND = "user_not_found"
    FAILED = "failed"


def format_pence(pence: int) -> str:
    return f"{pence / 100:.2f}"


def eligible_message(event: EvaluationCompletedDTO) -> str:
    return (
        f"Great news! Your train was delayed by {event.delay_minutes} minutes, "
        "and your journey is eligible for compensation.\n\n"
        f"Estimated compensation: £{format_pence(event.compensation_pence)}\n\n"
        "We'll be in touch with next steps."
    )


def ineligible_message(event: EvaluationCompletedDTO) -> str:
    return (
        f"We've completed the evaluation of your journey. Your train was delayed by {event.delay_minutes} minutes.\n\n"
        "Unfortunately, your journey does not qualify for compensation at this time.\n\n"
        "If you have questions, reply to this message."
    )


class NotifyEvaluationCompletedUseCase:
    """
    Tells the passenger the outcome of an eligibility evaluation over WhatsApp.

    Deliveries are keyed by correlation id: an event is marked processed only after
    the message went out, so a failed send is retried on redelivery and a delivered
    one is never sent twice.
    """

    def __init__(self, users: UserDirectoryPort, messenger: MessagingPort, processed: ConversationStorePort) -> None:
        self._users = users
        self._messenger = messenger
        self._processed = processed
        self._logger = logging.getLogger(__name__)

    def execute(self, event: EvaluationCompletedDTO) -> NotificationOutcome:
        correlation_id = (event.correlation_id or "").strip()
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            self._logger.warning(
                "evaluation.completed without correlation_id, generated one",
                extra={"correlation_id": correlation_id, "reason": f"journey_id={event.journey_id}"},
            )

        key = f"{_IDEMPOTENCY_PREFIX}{correlation_id}"
        if self._processed.has_processed(key):
            self._logger.info("Skipping duplicate evaluation.completed", extra={"correlation_id": correlation_id})
            return NotificationOutcome.DUPLICATE

        user = self._users.find_by_id(event.user_id)
        if user is None:
            self._logger.error(
                "User not found for evaluation notification",
                extra={"correlation_id": correlation_id, "user_id": event.user_id},
            )
            return NotificationOutcome.USER_NOT_FOUND

        body = eligible_message(event) if event.eligible else ineligible_message(event)
        try:
            self._messenger.send(user.phone_number, body)
        except MessagingError as e:
            self._logger.error(
                "Failed to send evaluation notification",
                extra={"correlation_id": correlation_id, "user_id": user.id, "reason": str(e)},
            )
            return NotificationOutcome.FAILED

        self._processed.mark_processed(key)
        self._logger.info(
            "Evaluation notification sent",
            extra={
                "correlation_id": correlation_id,
                "user_id": user.id,
                "reason": "eligible" if event.eligible else "ineligible",
            },
        )
        return NotificationOutcome.SENT

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Mapping

from claimchat.application.handlers.base import Handler, HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.registry import HANDLERS, get_handler
from claimchat.application.ports.conversation_store import ConversationStorePort
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.message import Message

GENERIC_APOLOGY = "Sorry, something went wrong on our side. Please send your message again."


@dataclass(frozen=True)
class MessageOutcome:
    reply: str | None
    state: FSMState | None  # None when the conversation record was cleared
    duplicate: bool = False
    event_count: int = 0


class HandleIncomingMessageUseCase:
    """
    One inbound message, one handler: load state, dispatch, then commit the
    transition and its outbox events together. Messages for the same identity are
    assumed to arrive one at a time; concurrent delivery is last-writer-wins.
    """

    def __init__(
        self,
        store: ConversationStorePort,
        deps: HandlerDeps,
        handlers: Mapping[FSMState, Handler] = HANDLERS,
    ) -> None:
        self._store = store
        self._deps = deps
        self._handlers = handlers
        self._logger = logging.getLogger(__name__)

    def handle(self, message: Message, correlation_id: str | None = None) -> MessageOutcome:
        correlation_id = correlation_id or str(uuid.uuid4())

        if self._store.has_processed(message.id):
            self._logger.info(
                "Duplicate message ignored",
                extra={"message_id": message.id, "correlation_id": correlation_id, "identity": message.identity},
            )
            return MessageOutcome(reply=None, state=None, duplicate=True)

        conversation = self._store.get(message.identity)
        ctx = HandlerContext(
            identity=message.identity,
            text=message.text or "",
            message_id=message.id,
            current_state=conversation.state,
            state_data=conversation.state_data,
            correlation_id=correlation_id,
            media_url=message.media_url,
            user=self._deps.users.find_by_phone(message.identity),
        )

        self._logger.info(
            "Message received",
            extra={
                "message_id": message.id,
                "correlation_id": correlation_id,
                "identity": message.identity,
                "state": conversation.state.value,
            },
        )

        try:
            handler = get_handler(conversation.state, self._handlers)
            result = handler(ctx, self._deps)
        except Exception:
            self._logger.exception(
                "Handler failed",
                extra={
                    "message_id": message.id,
                    "correlation_id": correlation_id,
                    "identity": message.identity,
                    "state": conversation.state.value,
                },
            )
            result = HandlerResult(reply=GENERIC_APOLOGY, next_state=FSMState.ERROR)

        next_state, next_data = self._resolve(conversation.state, conversation.state_data, result)
        self._store.commit(message.identity, next_state, next_data, result.events)
        self._store.mark_processed(message.id)

        self._logger.info(
            "Transition committed",
            extra={
                "message_id": message.id,
                "correlation_id": correlation_id,
                "identity": message.identity,
                "state": conversation.state.value,
                "next_state": next_state.value if next_state else "CLEARED",
                "reason": f"{len(result.events)} events",
            },
        )
        return MessageOutcome(reply=result.reply, state=next_state, event_count=len(result.events))

    @staticmethod
    def _resolve(current_state: FSMState, current_data: dict, result: HandlerResult) -> tuple[FSMState | None, dict]:
        if result.clear_state:
            return None, {}
        next_state = result.next_state or current_state
        next_data = current_data if result.state_data is None else result.state_data
        return next_state, next_data

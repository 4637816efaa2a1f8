from abc import ABC, abstractmethod
from typing import Any, Sequence

from claimchat.domain.entities.conversation_state import ConversationState, FSMState
from claimchat.domain.entities.outbox_event import OutboxEvent


class OutboxPort(ABC):
    @abstractmethod
    def get_unpublished(self, limit: int = 100) -> list[OutboxEvent]:
        """Events with published_at unset, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def mark_published(self, event_id: str) -> OutboxEvent | None:
        """Idempotent. Returns the updated event, or None if unknown."""
        raise NotImplementedError

    @abstractmethod
    def get_event(self, event_id: str) -> OutboxEvent | None:
        raise NotImplementedError


class ConversationStorePort(OutboxPort):
    @abstractmethod
    def get(self, identity: str) -> ConversationState:
        """Current state for identity; START with empty data when unknown."""
        raise NotImplementedError

    @abstractmethod
    def set(self, identity: str, state: FSMState, data: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self, identity: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def commit(
        self,
        identity: str,
        state: FSMState | None,
        data: dict[str, Any],
        events: Sequence[OutboxEvent] = (),
    ) -> None:
        """
        Persist a transition and its outbox events as one unit.
        state=None clears the conversation record while still recording the events.
        Last writer wins: there is no version check against a concurrent commit.
        """
        raise NotImplementedError

    @abstractmethod
    def has_processed(self, message_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def mark_processed(self, message_id: str) -> None:
        raise NotImplementedError

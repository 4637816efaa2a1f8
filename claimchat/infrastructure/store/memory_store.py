from __future__ import annotations

import copy
import threading
import time
from typing import Any, Sequence

from claimchat.application.ports.conversation_store import ConversationStorePort
from claimchat.domain.entities.conversation_state import ConversationState, FSMState
from claimchat.domain.entities.outbox_event import OutboxEvent


class MemoryConversationStore(ConversationStorePort):
    def __init__(self, processed_limit: int = 10_000) -> None:
        self._states: dict[str, ConversationState] = {}
        self._events: dict[str, OutboxEvent] = {}  # insertion order == created order
        self._processed: dict[str, None] = {}
        self._processed_limit = processed_limit
        self._lock = threading.Lock()

    def get(self, identity: str) -> ConversationState:
        with self._lock:
            current = self._states.get(identity)
        if current is None:
            return ConversationState(identity=identity)
        return ConversationState(
            identity=identity,
            state=current.state,
            state_data=copy.deepcopy(current.state_data),
            updated_at=current.updated_at,
        )

    def set(self, identity: str, state: FSMState, data: dict[str, Any]) -> None:
        self.commit(identity, state, data)

    def clear(self, identity: str) -> None:
        with self._lock:
            self._states.pop(identity, None)

    def commit(
        self,
        identity: str,
        state: FSMState | None,
        data: dict[str, Any],
        events: Sequence[OutboxEvent] = (),
    ) -> None:
        with self._lock:
            if state is None:
                self._states.pop(identity, None)
            else:
                self._states[identity] = ConversationState(
                    identity=identity,
                    state=state,
                    state_data=copy.deepcopy(data),
                    updated_at=time.time(),
                )
            for event in events:
                self._events[event.id] = event

    def has_processed(self, message_id: str) -> bool:
        with self._lock:
            return message_id in self._processed

    def mark_processed(self, message_id: str) -> None:
        with self._lock:
            self._processed[message_id] = None
            while len(self._processed) > self._processed_limit:
                self._processed.pop(next(iter(self._processed)))

    def get_unpublished(self, limit: int = 100) -> list[OutboxEvent]:
        with self._lock:
            pending = [event for event in self._events.values() if event.published_at is None]
        pending.sort(key=lambda event: event.created_at)
        return pending[:limit]

    def mark_published(self, event_id: str) -> OutboxEvent | None:
        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return None
            updated = event.mark_published()
            self._events[event_id] = updated
            return updated

    def get_event(self, event_id: str) -> OutboxEvent | None:
        with self._lock:
            return self._events.get(event_id)

    def all_events(self) -> list[OutboxEvent]:
        with self._lock:
            return list(self._events.values())

from __future__ import annotations

import logging

from claimchat.application.ports.event_publisher import EventPublisherPort
from claimchat.domain.entities.outbox_event import OutboxEvent


class LoggingEventPublisher(EventPublisherPort):
    """Writes events to the log. Stand-in until a broker-backed publisher exists."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def publish(self, event: OutboxEvent) -> None:
        self._logger.info(
            "Outbox event published",
            extra={
                "event_type": event.event_type,
                "correlation_id": event.payload.get("correlation_id"),
                "reason": f"{event.aggregate_type}:{event.aggregate_id} id={event.id}",
            },
        )

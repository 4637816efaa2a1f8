from __future__ import annotations

import logging
from dataclasses import dataclass

from claimchat.application.ports.conversation_store import OutboxPort
from claimchat.application.ports.event_publisher import EventPublisherPort


@dataclass(frozen=True)
class DrainResult:
    published: int
    failed: int


class DrainOutboxUseCase:
    """Publishes pending outbox events oldest first. A failed publish stays pending for the next drain."""

    def __init__(self, outbox: OutboxPort, publisher: EventPublisherPort, batch_size: int = 100) -> None:
        self._outbox = outbox
        self._publisher = publisher
        self._batch_size = batch_size
        self._logger = logging.getLogger(__name__)

    def execute(self) -> DrainResult:
        published = 0
        failed = 0
        for event in self._outbox.get_unpublished(limit=self._batch_size):
            try:
                self._publisher.publish(event)
            except Exception as e:
                failed += 1
                self._logger.error(
                    "Failed to publish outbox event",
                    exc_info=True,
                    extra={
                        "event_type": event.event_type,
                        "correlation_id": event.payload.get("correlation_id"),
                        "reason": str(e),
                    },
                )
                continue
            self._outbox.mark_published(event.id)
            published += 1

        if published or failed:
            self._logger.info("Outbox drained", extra={"reason": f"published={published} failed={failed}"})
        return DrainResult(published=published, failed=failed)

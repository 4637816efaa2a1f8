from abc import ABC, abstractmethod

from claimchat.domain.entities.outbox_event import OutboxEvent


class EventPublisherPort(ABC):
    @abstractmethod
    def publish(self, event: OutboxEvent) -> None:
        """Deliver one event downstream. Consumers deduplicate by event id."""
        raise NotImplementedError

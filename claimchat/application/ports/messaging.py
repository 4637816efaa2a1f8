from abc import ABC, abstractmethod


class MessagingPort(ABC):
    @abstractmethod
    def send(self, phone_number: str, body: str) -> None:
        """Deliver a proactive WhatsApp message outside a webhook reply."""
        raise NotImplementedError

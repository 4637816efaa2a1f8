from __future__ import annotations

import logging

from claimchat.application.ports.messaging import MessagingPort


class LoggingMessenger(MessagingPort):
    """Dev stand-in for Twilio: logs each message and keeps it in `sent`."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    def send(self, phone_number: str, body: str) -> None:
        self.sent.append((phone_number, body))
        self._logger.info("Outbound WhatsApp message", extra={"identity": phone_number, "body": body})

from __future__ import annotations

import logging

import httpx

from claimchat.application.exceptions import MessagingError
from claimchat.application.ports.messaging import MessagingPort

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


def whatsapp_address(phone_number: str) -> str:
    return phone_number if phone_number.startswith("whatsapp:") else f"whatsapp:{phone_number}"


class TwilioMessagingClient(MessagingPort):
    """Sends proactive WhatsApp messages through the Twilio Messages API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = TWILIO_API_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/Accounts/{account_sid}/Messages.json"
        self._from = whatsapp_address(from_number)
        self._client = client or httpx.Client(timeout=timeout)
        self._auth = httpx.BasicAuth(account_sid, auth_token)
        self._logger = logging.getLogger(__name__)

    def send(self, phone_number: str, body: str) -> None:
        data = {"From": self._from, "To": whatsapp_address(phone_number), "Body": body}
        try:
            resp = self._client.post(self._url, data=data, auth=self._auth)
        except httpx.HTTPError as e:
            raise MessagingError(f"Twilio unreachable: {e}") from e
        if resp.status_code >= 400:
            self._logger.error(
                "WhatsApp send rejected",
                extra={"identity": phone_number, "dependency": "twilio", "reason": resp.status_code},
            )
            raise MessagingError(f"Twilio returned {resp.status_code}")
        self._logger.info("WhatsApp message sent", extra={"identity": phone_number})

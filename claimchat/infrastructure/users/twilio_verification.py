from __future__ import annotations

import logging
from typing import Any

import httpx

from claimchat.application.exceptions import VerificationError
from claimchat.application.ports.verification import VerificationPort

TWILIO_VERIFY_URL = "https://verify.twilio.com/v2"


class TwilioVerifyClient(VerificationPort):
    """
    One-time codes over SMS through a Twilio Verify service.

    Transport failures and unexpected statuses surface as VerificationError. A check
    against a missing or expired verification (404) is a wrong code, not an outage.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        service_sid: str,
        base_url: str = TWILIO_VERIFY_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._service_url = f"{base_url.rstrip('/')}/Services/{service_sid}"
        self._client = client or httpx.Client(timeout=timeout)
        self._auth = httpx.BasicAuth(account_sid, auth_token)
        self._logger = logging.getLogger(__name__)

    def _post(self, path: str, data: dict[str, str]) -> httpx.Response:
        try:
            return self._client.post(f"{self._service_url}{path}", data=data, auth=self._auth)
        except httpx.HTTPError as e:
            raise VerificationError(f"Twilio Verify unreachable: {e}") from e

    def start(self, phone_number: str) -> None:
        resp = self._post("/Verifications", {"To": phone_number, "Channel": "sms"})
        if resp.status_code >= 400:
            self._logger.error(
                "Verification start rejected",
                extra={"identity": phone_number, "dependency": "twilio-verify", "reason": resp.status_code},
            )
            raise VerificationError(f"Twilio Verify returned {resp.status_code}")
        self._logger.info("Verification code sent", extra={"identity": phone_number})

    def check(self, phone_number: str, code: str) -> bool:
        resp = self._post("/VerificationCheck", {"To": phone_number, "Code": code})
        if resp.status_code == 404:
            return False
        if resp.status_code >= 400:
            self._logger.error(
                "Verification check rejected",
                extra={"identity": phone_number, "dependency": "twilio-verify", "reason": resp.status_code},
            )
            raise VerificationError(f"Twilio Verify returned {resp.status_code}")
        try:
            data: Any = resp.json()
        except ValueError as e:
            raise VerificationError("Twilio Verify returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise VerificationError("Twilio Verify returned an unexpected body")
        return bool(data.get("valid")) and data.get("status") == "approved"

from __future__ import annotations

import logging
import re

from claimchat.application.ports.verification import VerificationPort

_CODE_RE = re.compile(r"^\d{6}$")


class MockVerification(VerificationPort):
    """Accepts any six-digit code. `rejected_codes` lets tests force a mismatch."""

    def __init__(self, rejected_codes: tuple[str, ...] = ()) -> None:
        self._rejected = set(rejected_codes)
        self.started: list[str] = []
        self._logger = logging.getLogger(__name__)

    def start(self, phone_number: str) -> None:
        self.started.append(phone_number)
        self._logger.info("Mock verification code sent", extra={"identity": phone_number})

    def check(self, phone_number: str, code: str) -> bool:
        return bool(_CODE_RE.match(code)) and code not in self._rejected

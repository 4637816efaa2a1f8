from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FSMState(str, Enum):
    START = "START"
    AWAITING_TERMS = "AWAITING_TERMS"
    AWAITING_OTP = "AWAITING_OTP"
    AUTHENTICATED = "AUTHENTICATED"  # home state: new claim, status, help, logout
    AWAITING_JOURNEY_DATE = "AWAITING_JOURNEY_DATE"
    AWAITING_JOURNEY_STATIONS = "AWAITING_JOURNEY_STATIONS"
    AWAITING_JOURNEY_TIME = "AWAITING_JOURNEY_TIME"
    AWAITING_JOURNEY_CONFIRM = "AWAITING_JOURNEY_CONFIRM"  # direct route suggested
    AWAITING_ROUTING_CONFIRM = "AWAITING_ROUTING_CONFIRM"  # interchange route suggested
    AWAITING_ROUTING_ALTERNATIVE = "AWAITING_ROUTING_ALTERNATIVE"
    AWAITING_TICKET_UPLOAD = "AWAITING_TICKET_UPLOAD"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: Any) -> "FSMState | None":
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class ConversationState:
    identity: str
    state: FSMState = FSMState.START
    state_data: dict[str, Any] = field(default_factory=dict)
    updated_at: float | None = None

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EligibilityVerdict:
    eligible: bool
    delay_minutes: int | None = None
    compensation_amount: str | None = None
    reason: str | None = None
    delay_data_available: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EligibilityVerdict:
        delay = data.get("delay_minutes", data.get("delayMinutes"))
        return cls(
            eligible=bool(data.get("eligible", False)),
            delay_minutes=int(delay) if delay is not None else None,
            compensation_amount=data.get("compensation_amount") or data.get("compensationAmount"),
            reason=data.get("reason") or data.get("ineligibilityReason"),
            delay_data_available=bool(data.get("delay_data_available", data.get("delayDataAvailable", True))),
        )


@dataclass(frozen=True)
class ClaimSummary:
    claim_id: str
    journey_id: str | None
    status: str
    compensation_amount: str | None = None
    travel_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClaimSummary:
        return cls(
            claim_id=str(data.get("claim_id") or data.get("id") or ""),
            journey_id=data.get("journey_id"),
            status=str(data.get("status", "unknown")),
            compensation_amount=data.get("compensation_amount"),
            travel_date=data.get("travel_date"),
        )

from __future__ import annotations

import logging

from claimchat.application.ports.eligibility import EligibilityPort, TrackingPort
from claimchat.domain.entities.eligibility import ClaimSummary, EligibilityVerdict
from claimchat.domain.entities.route import Route


class MockEligibility(EligibilityPort):
    def __init__(self, verdict: EligibilityVerdict | None = None) -> None:
        self._verdict = verdict or EligibilityVerdict(
            eligible=True,
            delay_minutes=32,
            compensation_amount="£12.50",
        )
        self._claims: dict[str, list[ClaimSummary]] = {}
        self.checked: list[str] = []
        self._logger = logging.getLogger(__name__)

    def check_eligibility(
        self,
        journey_id: str,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> EligibilityVerdict:
        self.checked.append(journey_id)
        self._logger.info(
            "Mock eligibility check",
            extra={"correlation_id": correlation_id, "reason": f"journey={journey_id} eligible={self._verdict.eligible}"},
        )
        return self._verdict

    def claim_status(self, user_id: str, correlation_id: str) -> list[ClaimSummary]:
        return list(self._claims.get(user_id, []))

    def add_claim(self, user_id: str, claim: ClaimSummary) -> None:
        self._claims.setdefault(user_id, []).append(claim)


class MockTracking(TrackingPort):
    def __init__(self) -> None:
        self.registered: dict[str, str] = {}
        self._logger = logging.getLogger(__name__)

    def register_journey(
        self,
        journey_id: str,
        user_id: str | None,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> str:
        tracking_id = f"mock_tracking_{len(self.registered) + 1}"
        self.registered[journey_id] = tracking_id
        self._logger.info(
            "Mock journey registered for tracking",
            extra={"correlation_id": correlation_id, "reason": f"journey={journey_id} tracking={tracking_id}"},
        )
        return tracking_id

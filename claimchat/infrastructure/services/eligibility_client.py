from __future__ import annotations

from claimchat.application.ports.eligibility import EligibilityPort, TrackingPort
from claimchat.domain.entities.eligibility import ClaimSummary, EligibilityVerdict
from claimchat.domain.entities.route import Route
from claimchat.infrastructure.http.resilient_client import ResilientClient


class EligibilityEngineClient(EligibilityPort):
    def __init__(self, http: ResilientClient) -> None:
        self._http = http

    def check_eligibility(
        self,
        journey_id: str,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> EligibilityVerdict:
        payload = {
            "journey_id": journey_id,
            "travel_date": travel_date,
            "route": route.to_dict() if route else None,
        }
        data = self._http.post("/eligibility", json=payload, correlation_id=correlation_id) or {}
        return EligibilityVerdict.from_dict(data)

    def claim_status(self, user_id: str, correlation_id: str) -> list[ClaimSummary]:
        data = self._http.get("/claims", params={"user_id": user_id}, correlation_id=correlation_id) or {}
        raw_claims = data.get("claims") if isinstance(data, dict) else data
        return [ClaimSummary.from_dict(raw) for raw in raw_claims or [] if isinstance(raw, dict)]


class DelayTrackerClient(TrackingPort):
    def __init__(self, http: ResilientClient) -> None:
        self._http = http

    def register_journey(
        self,
        journey_id: str,
        user_id: str | None,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> str:
        payload = {
            "journey_id": journey_id,
            "user_id": user_id,
            "travel_date": travel_date,
            "route": route.to_dict() if route else None,
        }
        data = self._http.post("/tracking", json=payload, correlation_id=correlation_id) or {}
        return str(data.get("tracking_id") or data.get("trackingId") or "")

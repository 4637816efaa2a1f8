from __future__ import annotations

from abc import ABC, abstractmethod

from claimchat.domain.entities.eligibility import ClaimSummary, EligibilityVerdict
from claimchat.domain.entities.route import Route


class EligibilityPort(ABC):
    @abstractmethod
    def check_eligibility(
        self,
        journey_id: str,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> EligibilityVerdict:
        raise NotImplementedError

    @abstractmethod
    def claim_status(self, user_id: str, correlation_id: str) -> list[ClaimSummary]:
        raise NotImplementedError


class TrackingPort(ABC):
    @abstractmethod
    def register_journey(
        self,
        journey_id: str,
        user_id: str | None,
        travel_date: str,
        route: Route | None,
        correlation_id: str,
    ) -> str:
        """Register a future journey for delay tracking. Returns the tracking id."""
        raise NotImplementedError

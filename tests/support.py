"""Shared builders for handler and pipeline tests."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from claimchat.application.handlers.base import HandlerContext, HandlerDeps
from claimchat.application.ports.route_lookup import RouteLookupPort
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.route import Route, RouteLeg
from claimchat.domain.entities.user import User
from claimchat.infrastructure.services.mock_eligibility import MockEligibility, MockTracking
from claimchat.infrastructure.services.mock_stations import MockStationLookup
from claimchat.infrastructure.users.memory_directory import MemoryUserDirectory
from claimchat.infrastructure.users.mock_verification import MockVerification

LONDON = ZoneInfo("Europe/London")
NOW = datetime(2024, 11, 20, 12, 0, tzinfo=LONDON)
IDENTITY = "+447700900123"

JOURNEY_DATA: dict[str, Any] = {
    "journeyId": "journey-123",
    "travelDate": "2024-11-19",
    "origin": "PAD",
    "destination": "BRI",
    "originName": "London Paddington",
    "destinationName": "Bristol Temple Meads",
}


class FakeRouteLookup(RouteLookupPort):
    """Replays scripted responses in order; an Exception entry is raised. Runs dry as []."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def find_routes(
        self,
        origin: str,
        destination: str,
        travel_date: str,
        departure_time: str,
        correlation_id: str,
        offset: int = 0,
    ) -> list[Route]:
        self.calls.append(
            {
                "from": origin,
                "to": destination,
                "date": travel_date,
                "time": departure_time,
                "offset": offset,
                "correlation_id": correlation_id,
            }
        )
        if not self.responses:
            return []
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def direct_route(departure: str, arrival: str = "10:15", origin: str = "PAD", destination: str = "BRI") -> Route:
    leg = RouteLeg(origin, destination, departure, arrival, "GW", trip_id=f"trip-{departure}")
    return Route(legs=(leg,), total_duration="1h 44m", is_direct=True)


def interchange_route(departure: str, via: str = "BHM") -> Route:
    legs = (
        RouteLeg("PAD", via, departure, "10:00", "GW"),
        RouteLeg(via, "BRI", "10:15", "11:30", "XC"),
    )
    return Route(legs=legs, total_duration="3h 0m", is_direct=False, interchange_station=via)


def make_user(verified: bool = True) -> User:
    return User(
        id="user-1",
        phone_number=IDENTITY,
        created_at=NOW,
        verified_at=NOW if verified else None,
    )


def make_deps(route_lookup: RouteLookupPort | None = None, **overrides: Any) -> HandlerDeps:
    fields: dict[str, Any] = {
        "route_lookup": route_lookup or FakeRouteLookup(),
        "stations": MockStationLookup(),
        "eligibility": MockEligibility(),
        "tracking": MockTracking(),
        "users": MemoryUserDirectory(),
        "verification": MockVerification(),
        "timezone": LONDON,
        "clock": lambda: NOW,
    }
    fields.update(overrides)
    return HandlerDeps(**fields)


def make_ctx(
    state: FSMState,
    text: str,
    state_data: dict[str, Any] | None = None,
    user: User | None = None,
    media_url: str | None = None,
    message_id: str = "SM-1",
) -> HandlerContext:
    return HandlerContext(
        identity=IDENTITY,
        text=text,
        message_id=message_id,
        current_state=state,
        state_data=dict(state_data or {}),
        correlation_id="corr-123",
        media_url=media_url,
        user=user,
    )


def departures(raw_routes: list[dict[str, Any]]) -> list[str]:
    return [Route.from_dict(raw).departure for raw in raw_routes]

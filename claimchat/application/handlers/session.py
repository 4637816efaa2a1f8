from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from claimchat.application.exceptions import MissingContextError
from claimchat.domain.entities.route import Route

MAX_ALTERNATIVE_ROUNDS = 3
ROUTES_PER_ROUND = 3


@dataclass(frozen=True)
class JourneyContext:
    """Typed view over the journey keys collected in state_data across the dialogue."""

    journey_id: str | None
    travel_date: str | None
    origin: str | None
    destination: str | None
    origin_name: str | None = None
    destination_name: str | None = None
    departure_time: str | None = None

    _KEYS = {
        "journey_id": "journeyId",
        "travel_date": "travelDate",
        "origin": "origin",
        "destination": "destination",
        "departure_time": "departureTime",
    }

    @classmethod
    def from_state_data(cls, data: Mapping[str, Any], required: Sequence[str] = ()) -> JourneyContext:
        """Raises MissingContextError naming every required state_data key that is absent or empty."""
        missing = [cls._KEYS[name] for name in required if not data.get(cls._KEYS[name])]
        if missing:
            raise MissingContextError(missing)
        return cls(
            journey_id=data.get("journeyId"),
            travel_date=data.get("travelDate"),
            origin=data.get("origin"),
            destination=data.get("destination"),
            origin_name=data.get("originName") or data.get("origin"),
            destination_name=data.get("destinationName") or data.get("destination"),
            departure_time=data.get("departureTime"),
        )


@dataclass(frozen=True)
class RoutingRound:
    """
    The alternatives negotiation kept in state_data: the full ranked list from the
    first lookup, the routes currently offered, and how many rounds were shown.
    Missing keys read as empty so callers fall back to a fresh lookup.
    """

    all_routes: tuple[Route, ...] = ()
    current_alternatives: tuple[Route, ...] = ()
    alternative_count: int = 1

    @classmethod
    def from_state_data(cls, data: Mapping[str, Any]) -> RoutingRound:
        return cls(
            all_routes=_routes(data.get("allRoutes")),
            current_alternatives=_routes(data.get("currentAlternatives")),
            alternative_count=int(data.get("alternativeCount") or 1),
        )

    @property
    def exhausted(self) -> bool:
        return self.alternative_count >= MAX_ALTERNATIVE_ROUNDS

    @property
    def next_offset(self) -> int:
        return self.alternative_count * ROUTES_PER_ROUND

    @property
    def current_offset(self) -> int:
        """Offset that reproduces the round currently on screen."""
        return 1 if self.alternative_count <= 1 else (self.alternative_count - 1) * ROUTES_PER_ROUND

    def first_round(self) -> tuple[Route, ...]:
        # index 0 is the suggestion the user just rejected
        return self.all_routes[1 : 1 + ROUTES_PER_ROUND]


def matched_route(data: Mapping[str, Any]) -> Route:
    raw = data.get("matchedRoute")
    if not isinstance(raw, dict):
        raise MissingContextError(["matchedRoute"])
    return Route.from_dict(raw)


def alternatives_state(routes: Sequence[Route], alternative_count: int) -> dict[str, Any]:
    return {
        "currentAlternatives": [route.to_dict() for route in routes],
        "alternativeCount": alternative_count,
    }


def _routes(raw: Any) -> tuple[Route, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(Route.from_dict(item) for item in raw if isinstance(item, dict))

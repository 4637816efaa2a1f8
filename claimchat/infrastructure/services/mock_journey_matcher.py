from __future__ import annotations

import logging
from datetime import datetime, timedelta

from claimchat.application.ports.route_lookup import RouteLookupPort
from claimchat.domain.entities.route import Route, RouteLeg


class MockJourneyMatcher(RouteLookupPort):
    """
    Deterministic routes for local runs: one every hour from the requested time.
    Every other route changes at `interchange`. Returns [] once `max_routes` is exhausted.
    """

    def __init__(self, interchange: str = "BHM", operator: str = "GW", max_routes: int = 10) -> None:
        self._interchange = interchange
        self._operator = operator
        self._max_routes = max_routes
        self.calls: list[dict[str, object]] = []
        self._logger = logging.getLogger(__name__)

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
            {"from": origin, "to": destination, "date": travel_date, "time": departure_time, "offset": offset}
        )
        self._logger.info(
            "Mock journey-matcher lookup",
            extra={"correlation_id": correlation_id, "reason": f"{origin}->{destination} offset={offset}"},
        )
        start = datetime.strptime(departure_time, "%H:%M")
        routes: list[Route] = []
        for index in range(offset, min(offset + 4, self._max_routes)):
            depart = start + timedelta(hours=index)
            if index % 2 == 0:
                routes.append(self._direct(origin, destination, depart))
            else:
                routes.append(self._interchange_route(origin, destination, depart))
        return routes

    def _direct(self, origin: str, destination: str, depart: datetime) -> Route:
        arrive = depart + timedelta(minutes=95)
        leg = RouteLeg(origin, destination, depart.strftime("%H:%M"), arrive.strftime("%H:%M"), self._operator)
        return Route(legs=(leg,), total_duration="1h 35m", is_direct=True)

    def _interchange_route(self, origin: str, destination: str, depart: datetime) -> Route:
        change_arrive = depart + timedelta(minutes=50)
        change_depart = change_arrive + timedelta(minutes=12)
        arrive = change_depart + timedelta(minutes=58)
        legs = (
            RouteLeg(origin, self._interchange, depart.strftime("%H:%M"), change_arrive.strftime("%H:%M"), self._operator),
            RouteLeg(self._interchange, destination, change_depart.strftime("%H:%M"), arrive.strftime("%H:%M"), "XC"),
        )
        return Route(legs=legs, total_duration="2h 0m", is_direct=False, interchange_station=self._interchange)

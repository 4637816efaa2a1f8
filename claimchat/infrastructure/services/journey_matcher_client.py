from __future__ import annotations

import logging

from claimchat.application.ports.route_lookup import RouteLookupPort
from claimchat.domain.entities.route import Route
from claimchat.infrastructure.http.resilient_client import ResilientClient


class JourneyMatcherClient(RouteLookupPort):
    def __init__(self, http: ResilientClient) -> None:
        self._http = http
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
        params: dict[str, str | int] = {
            "from": origin,
            "to": destination,
            "date": travel_date,
            "time": departure_time,
        }
        if offset:
            params["offset"] = offset

        self._logger.info(
            "Calling journey-matcher",
            extra={"correlation_id": correlation_id, "dependency": self._http.name, "reason": f"offset={offset}"},
        )
        data = self._http.get("/routes", params=params, correlation_id=correlation_id) or {}
        raw_routes = data.get("routes") if isinstance(data, dict) else data
        return [Route.from_dict(raw) for raw in raw_routes or [] if isinstance(raw, dict)]

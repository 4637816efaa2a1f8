from __future__ import annotations

import logging

import httpx

from claimchat.application.ports.station_lookup import StationLookupPort
from claimchat.domain.entities.station import Station
from claimchat.infrastructure.http.resilient_client import CORRELATION_HEADER


class TimetableStationLookup(StationLookupPort):
    """Plain passthrough to timetable-loader; failures read as 'no match'."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def search(self, query: str, correlation_id: str | None = None) -> list[Station]:
        url = f"{self._base_url}/api/v1/stations/search"
        headers = {CORRELATION_HEADER: correlation_id} if correlation_id else {}
        try:
            resp = self._client.get(url, params={"q": query}, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error(
                "Station search error",
                extra={"correlation_id": correlation_id, "dependency": "timetable-loader", "reason": str(e)},
            )
            return []

        if resp.status_code >= 400:
            self._logger.error(
                "Station search failed",
                extra={"correlation_id": correlation_id, "dependency": "timetable-loader", "reason": resp.status_code},
            )
            return []

        try:
            data = resp.json()
        except ValueError:
            return []
        stations: list[Station] = []
        for item in data or []:
            if isinstance(item, dict) and item.get("crs"):
                stations.append(Station(crs=str(item["crs"]).upper(), name=str(item.get("name") or item["crs"])))
        return stations

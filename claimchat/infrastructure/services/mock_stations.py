from __future__ import annotations

from claimchat.application.ports.station_lookup import StationLookupPort
from claimchat.domain.entities.station import Station

DEFAULT_STATIONS = (
    Station("PAD", "London Paddington"),
    Station("KGX", "London Kings Cross"),
    Station("EUS", "London Euston"),
    Station("RDG", "Reading"),
    Station("BRI", "Bristol Temple Meads"),
    Station("BHM", "Birmingham New Street"),
    Station("MAN", "Manchester Piccadilly"),
    Station("LDS", "Leeds"),
    Station("YRK", "York"),
    Station("EDB", "Edinburgh"),
    Station("CDF", "Cardiff Central"),
    Station("SWA", "Swansea"),
)


class MockStationLookup(StationLookupPort):
    def __init__(self, stations: tuple[Station, ...] = DEFAULT_STATIONS) -> None:
        self._stations = stations

    def search(self, query: str, correlation_id: str | None = None) -> list[Station]:
        needle = query.strip().lower()
        if not needle:
            return []
        exact = [s for s in self._stations if s.crs.lower() == needle or s.name.lower() == needle]
        if exact:
            return exact
        return [s for s in self._stations if needle in s.name.lower()]

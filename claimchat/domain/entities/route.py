from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RouteLeg:
    origin: str
    destination: str
    departure: str  # HH:MM
    arrival: str  # HH:MM
    operator: str
    trip_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RouteLeg:
        return cls(
            origin=str(data.get("from", "")),
            destination=str(data.get("to", "")),
            departure=str(data.get("departure", "")),
            arrival=str(data.get("arrival", "")),
            operator=str(data.get("operator", "")),
            trip_id=data.get("tripId"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "from": self.origin,
            "to": self.destination,
            "departure": self.departure,
            "arrival": self.arrival,
            "operator": self.operator,
        }
        if self.trip_id:
            result["tripId"] = self.trip_id
        return result


@dataclass(frozen=True)
class Route:
    legs: tuple[RouteLeg, ...] = field(default_factory=tuple)
    total_duration: str = ""
    is_direct: bool = True
    interchange_station: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Route:
        legs = tuple(RouteLeg.from_dict(leg) for leg in data.get("legs") or [])
        is_direct = data.get("isDirect")
        if is_direct is None:
            is_direct = len(legs) <= 1
        interchange = data.get("interchangeStation")
        if not interchange and not is_direct and legs:
            interchange = legs[0].destination
        return cls(
            legs=legs,
            total_duration=str(data.get("totalDuration", "")),
            is_direct=bool(is_direct),
            interchange_station=interchange,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "legs": [leg.to_dict() for leg in self.legs],
            "totalDuration": self.total_duration,
            "isDirect": self.is_direct,
        }
        if self.interchange_station:
            result["interchangeStation"] = self.interchange_station
        return result

    @property
    def first_leg(self) -> RouteLeg | None:
        return self.legs[0] if self.legs else None

    @property
    def last_leg(self) -> RouteLeg | None:
        return self.legs[-1] if self.legs else None

    @property
    def departure(self) -> str | None:
        return self.first_leg.departure if self.first_leg else None

    @property
    def arrival(self) -> str | None:
        return self.last_leg.arrival if self.last_leg else None

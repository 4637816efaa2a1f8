from __future__ import annotations

from abc import ABC, abstractmethod

from claimchat.domain.entities.route import Route


class RouteLookupPort(ABC):
    @abstractmethod
    def find_routes(
        self,
        origin: str,
        destination: str,
        travel_date: str,
        departure_time: str,
        correlation_id: str,
        offset: int = 0,
    ) -> list[Route]:
        """
        Ranked candidate routes, best match first. An empty list is a normal answer.
        Raises DownstreamError subclasses when the service cannot answer.
        """
        raise NotImplementedError

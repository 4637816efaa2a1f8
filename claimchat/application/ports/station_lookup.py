from abc import ABC, abstractmethod

from claimchat.domain.entities.station import Station


class StationLookupPort(ABC):
    @abstractmethod
    def search(self, query: str, correlation_id: str | None = None) -> list[Station]:
        """Best match first. Returns [] when nothing matches or the lookup fails."""
        raise NotImplementedError

from dataclasses import dataclass


@dataclass(frozen=True)
class Station:
    crs: str  # 3-letter station code, e.g. "KGX"
    name: str

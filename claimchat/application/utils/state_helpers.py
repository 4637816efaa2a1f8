from __future__ import annotations

from typing import Any, Mapping

ROUTING_ROUND_KEYS = ("allRoutes", "currentAlternatives", "alternativeCount")
ROUTE_CHOICE_KEYS = ("matchedRoute", "confirmedRoute", "routingConfirmed", "isDirect", "interchangeStation")


def merge_state_data(state_data: Mapping[str, Any] | None, **updates: Any) -> dict[str, Any]:
    """Copy of state_data with updates applied; every other key is kept as-is."""
    merged = dict(state_data or {})
    merged.update(updates)
    return merged


def without_keys(state_data: Mapping[str, Any] | None, *keys: str) -> dict[str, Any]:
    return {key: value for key, value in (state_data or {}).items() if key not in keys}


def reset_route_choice(state_data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop a previous lookup's candidates and selection before a new lookup replaces them."""
    return without_keys(state_data, *ROUTING_ROUND_KEYS, *ROUTE_CHOICE_KEYS)

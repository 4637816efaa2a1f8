from __future__ import annotations

from typing import Sequence

from claimchat.domain.entities.route import Route

ALTERNATIVES_FOOTER = "Reply with 1, 2, or 3 to select a route, or NONE if none of these match your journey."


def station_path(route: Route) -> str:
    if not route.legs:
        return ""
    stops = [leg.origin for leg in route.legs] + [route.legs[-1].destination]
    return " → ".join(stops)


def format_suggestion(route: Route, origin_name: str, destination_name: str) -> str:
    """Present the top candidate from a route lookup and ask for confirmation."""
    if route.is_direct and route.first_leg:
        leg = route.first_leg
        summary = f"I found the {leg.departure} {origin_name} → {destination_name} ({leg.operator})."
    else:
        lines = [f"I found a journey with a change at {route.interchange_station}:", ""]
        for index, leg in enumerate(route.legs, start=1):
            lines.append(f"  Leg {index}: {leg.departure} {leg.origin} → {leg.destination}")
        summary = "\n".join(lines)
    return f"{summary}\n\nIs this the journey you took? Reply YES to confirm or NO to see alternatives."


def format_alternatives(routes: Sequence[Route], header: str = "Here are alternative routes for your journey:") -> str:
    lines = [header]
    for number, route in enumerate(routes, start=1):
        lines.append("")
        lines.append(f"{number}. {station_path(route)}")
        for index, leg in enumerate(route.legs, start=1):
            lines.append(
                f"   Leg {index}: {leg.origin} → {leg.destination} ({leg.operator}, {leg.departure}-{leg.arrival})"
            )
        if route.total_duration:
            lines.append(f"   Total: {route.total_duration}")
    lines.append("")
    lines.append(ALTERNATIVES_FOOTER)
    return "\n".join(lines)

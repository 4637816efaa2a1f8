from __future__ import annotations

import logging
import re

from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult
from claimchat.application.handlers.messages import JOURNEY_TIME
from claimchat.application.utils.state_helpers import merge_state_data
from claimchat.domain.entities.conversation_state import FSMState

logger = logging.getLogger(__name__)

_STATIONS_RE = re.compile(r"^(?:from\s+)?(.+?)\s+to\s+(.+)$", re.IGNORECASE)

INVALID_FORMAT = """Invalid format. Please tell me your journey like:

Examples:
• "Kings Cross to Edinburgh"
• "Manchester to London"
• "Brighton to Victoria"

Make sure to include "to" between the stations."""


def parse_station_pair(text: str) -> tuple[str, str] | None:
    """Split "X to Y" / "from X to Y" into stripped origin and destination names."""
    match = _STATIONS_RE.match(text.strip())
    if not match:
        return None
    origin, destination = match.group(1).strip(), match.group(2).strip()
    if not origin or not destination:
        return None
    return origin, destination


def handle_journey_stations(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    pair = parse_station_pair(ctx.text)
    if pair is None:
        return HandlerResult(reply=INVALID_FORMAT)
    origin_query, destination_query = pair

    origins = deps.stations.search(origin_query, ctx.correlation_id)
    if not origins:
        logger.warning("Station not found", extra={"correlation_id": ctx.correlation_id, "reason": origin_query})
        return HandlerResult(
            reply=f'I couldn\'t find a station called "{origin_query}". Please try again with the full station name.'
        )

    destinations = deps.stations.search(destination_query, ctx.correlation_id)
    if not destinations:
        logger.warning("Station not found", extra={"correlation_id": ctx.correlation_id, "reason": destination_query})
        return HandlerResult(
            reply=f'I couldn\'t find a station called "{destination_query}". Please try again with the full station name.'
        )

    # best match first
    origin, destination = origins[0], destinations[0]
    logger.info(
        "Stations resolved",
        extra={"correlation_id": ctx.correlation_id, "reason": f"{origin.crs}->{destination.crs}"},
    )
    return HandlerResult(
        reply=f"Got it! Journey route: {origin.name} → {destination.name}\n\n{JOURNEY_TIME}",
        next_state=FSMState.AWAITING_JOURNEY_TIME,
        state_data=merge_state_data(
            ctx.state_data,
            origin=origin.crs,
            destination=destination.crs,
            originName=origin.name,
            destinationName=destination.name,
        ),
    )

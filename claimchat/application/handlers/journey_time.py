from __future__ import annotations

import logging

from claimchat.application.exceptions import DownstreamError, MissingContextError
from claimchat.application.handlers.base import (
    HandlerContext,
    HandlerDeps,
    HandlerResult,
    missing_context_result,
    route_lookup_failure_reply,
)
from claimchat.application.handlers.session import JourneyContext
from claimchat.application.utils.route_formatter import format_suggestion
from claimchat.application.utils.state_helpers import merge_state_data, reset_route_choice
from claimchat.application.utils.time_parser import parse_journey_time
from claimchat.domain.entities.conversation_state import FSMState

logger = logging.getLogger(__name__)


def handle_journey_time(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    result = parse_journey_time(ctx.text)
    if not result.ok:
        return HandlerResult(
            reply=(
                f"{result.error}\n\n"
                "Please try again with a valid time like:\n"
                '• "14:30"\n• "2:30pm"\n• "1430"\n• "2pm"'
            )
        )
    return suggest_route(ctx, deps, result.hhmm)


def suggest_route(ctx: HandlerContext, deps: HandlerDeps, departure_time: str) -> HandlerResult:
    """
    Look up routes once for the given time and present the top candidate.
    The whole ranked list is kept in allRoutes so the first round of alternatives
    needs no second lookup. Failures leave state and data untouched.
    """
    try:
        journey = JourneyContext.from_state_data(ctx.state_data, required=("travel_date", "origin", "destination"))
    except MissingContextError as e:
        return missing_context_result(ctx, e)

    try:
        routes = deps.route_lookup.find_routes(
            journey.origin,
            journey.destination,
            journey.travel_date,
            departure_time,
            correlation_id=ctx.correlation_id,
        )
    except DownstreamError as e:
        logger.error(
            "Route lookup failed",
            extra={
                "correlation_id": ctx.correlation_id,
                "dependency": e.dependency,
                "state": ctx.current_state.value,
                "reason": e.code or str(e),
            },
        )
        return HandlerResult(reply=route_lookup_failure_reply(e))

    if not routes:
        logger.warning(
            "No routes found",
            extra={"correlation_id": ctx.correlation_id, "reason": f"{journey.origin}->{journey.destination} {departure_time}"},
        )
        return HandlerResult(reply="I couldn't find any trains matching that time. Please try a different time.")

    top = routes[0]
    state_data = merge_state_data(
        reset_route_choice(ctx.state_data),
        departureTime=departure_time,
        matchedRoute=top.to_dict(),
        allRoutes=[route.to_dict() for route in routes],
        isDirect=top.is_direct,
    )
    if top.is_direct:
        next_state = FSMState.AWAITING_JOURNEY_CONFIRM
    else:
        next_state = FSMState.AWAITING_ROUTING_CONFIRM
        state_data["interchangeStation"] = top.interchange_station

    logger.info(
        "Route suggested",
        extra={
            "correlation_id": ctx.correlation_id,
            "next_state": next_state.value,
            "reason": f"{len(routes)} candidates",
        },
    )
    return HandlerResult(
        reply=format_suggestion(top, journey.origin_name, journey.destination_name),
        next_state=next_state,
        state_data=state_data,
    )

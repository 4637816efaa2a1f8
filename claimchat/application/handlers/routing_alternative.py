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
from claimchat.application.handlers.messages import ESCALATION, TICKET_REQUEST
from claimchat.application.handlers.session import (
    ROUTES_PER_ROUND,
    JourneyContext,
    RoutingRound,
    alternatives_state,
)
from claimchat.application.utils.route_formatter import format_alternatives
from claimchat.application.utils.state_helpers import merge_state_data
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.outbox_event import new_event
from claimchat.domain.entities.route import Route

logger = logging.getLogger(__name__)

REPROMPT = "Please reply with 1, 2, or 3 to select a route, or NONE to see more options."


def handle_routing_alternative(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    """
    Bounded negotiation over alternative routes. Each NONE shows a fresh batch
    (offset = rounds shown x 3) until three rounds have been rejected, then the
    journey is escalated to support and the conversation parks in ERROR.
    """
    command = ctx.command
    routing = RoutingRound.from_state_data(ctx.state_data)

    if command.isdigit():
        return _select(ctx, deps, routing, int(command))

    if command == "NONE":
        if routing.exhausted:
            return escalate(ctx, routing, reason="max_alternatives_exceeded")
        return _next_round(ctx, deps, routing)

    return HandlerResult(reply=REPROMPT)


def find_alternatives(ctx: HandlerContext, deps: HandlerDeps, offset: int) -> list[Route]:
    """Fresh route lookup for the stored journey. Raises MissingContextError or DownstreamError."""
    journey = JourneyContext.from_state_data(
        ctx.state_data, required=("travel_date", "origin", "destination", "departure_time")
    )
    logger.info(
        "Fetching alternative routes",
        extra={"correlation_id": ctx.correlation_id, "reason": f"offset={offset}"},
    )
    routes = deps.route_lookup.find_routes(
        journey.origin,
        journey.destination,
        journey.travel_date,
        journey.departure_time,
        correlation_id=ctx.correlation_id,
        offset=offset,
    )
    return list(routes[:ROUTES_PER_ROUND])


def escalate(ctx: HandlerContext, routing: RoutingRound, reason: str) -> HandlerResult:
    """Emit journey.routing_escalation and move to ERROR in the same commit."""
    try:
        journey = JourneyContext.from_state_data(ctx.state_data, required=("journey_id",))
    except MissingContextError as e:
        return missing_context_result(ctx, e)

    logger.warning(
        "Routing alternatives escalated",
        extra={
            "correlation_id": ctx.correlation_id,
            "event_type": "journey.routing_escalation",
            "reason": reason,
            "next_state": FSMState.ERROR.value,
        },
    )
    event = new_event(
        "journey",
        journey.journey_id,
        "journey.routing_escalation",
        {
            "journey_id": journey.journey_id,
            "user_id": ctx.user.id if ctx.user else None,
            "reason": reason,
            "alternative_count": routing.alternative_count,
        },
        correlation_id=ctx.correlation_id,
        causation_id=ctx.message_id,
    )
    return HandlerResult(
        reply=ESCALATION,
        next_state=FSMState.ERROR,
        state_data=merge_state_data(ctx.state_data, escalationRequired=True),
        events=[event],
    )


def _select(ctx: HandlerContext, deps: HandlerDeps, routing: RoutingRound, number: int) -> HandlerResult:
    offered = routing.current_alternatives
    if not offered:
        # Nothing stored for this round; show it again instead of guessing
        return _refetch_current_round(ctx, deps, routing)

    if not 1 <= number <= len(offered):
        return HandlerResult(reply=f"Please select a valid option (1-{len(offered)}).")

    selected = offered[number - 1]
    logger.info(
        "Alternative route selected",
        extra={"correlation_id": ctx.correlation_id, "next_state": FSMState.AWAITING_TICKET_UPLOAD.value},
    )
    return HandlerResult(
        reply=f"Great! You've selected route {number}.\n\n{TICKET_REQUEST}",
        next_state=FSMState.AWAITING_TICKET_UPLOAD,
        state_data=merge_state_data(ctx.state_data, confirmedRoute=selected.to_dict(), routingConfirmed=True),
    )


def _next_round(ctx: HandlerContext, deps: HandlerDeps, routing: RoutingRound) -> HandlerResult:
    try:
        routes = find_alternatives(ctx, deps, routing.next_offset)
    except MissingContextError as e:
        return missing_context_result(ctx, e)
    except DownstreamError as e:
        return _lookup_failed(ctx, e)

    if not routes:
        return escalate(ctx, routing, reason="no_more_routes")

    return HandlerResult(
        reply=format_alternatives(routes),
        state_data=merge_state_data(ctx.state_data, **alternatives_state(routes, routing.alternative_count + 1)),
    )


def _refetch_current_round(ctx: HandlerContext, deps: HandlerDeps, routing: RoutingRound) -> HandlerResult:
    try:
        routes = find_alternatives(ctx, deps, routing.current_offset)
    except MissingContextError as e:
        return missing_context_result(ctx, e)
    except DownstreamError as e:
        return _lookup_failed(ctx, e)

    if not routes:
        return escalate(ctx, routing, reason="no_more_routes")

    return HandlerResult(
        reply=format_alternatives(routes, header="Here are the routes again:"),
        state_data=merge_state_data(ctx.state_data, **alternatives_state(routes, routing.alternative_count)),
    )


def _lookup_failed(ctx: HandlerContext, error: DownstreamError) -> HandlerResult:
    logger.error(
        "Alternative route lookup failed",
        extra={
            "correlation_id": ctx.correlation_id,
            "dependency": error.dependency,
            "state": ctx.current_state.value,
            "reason": error.code or str(error),
        },
    )
    return HandlerResult(reply=route_lookup_failure_reply(error))

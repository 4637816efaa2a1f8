from __future__ import annotations

import logging

from claimchat.application.exceptions import DownstreamError, MissingContextError
from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult, missing_context_result
from claimchat.application.handlers.journey_time import suggest_route
from claimchat.application.handlers.messages import TICKET_REQUEST
from claimchat.application.handlers.routing_alternative import find_alternatives
from claimchat.application.handlers.session import RoutingRound, alternatives_state, matched_route
from claimchat.application.utils.route_formatter import format_alternatives
from claimchat.application.utils.state_helpers import merge_state_data
from claimchat.application.utils.time_parser import parse_journey_time
from claimchat.domain.entities.conversation_state import FSMState

logger = logging.getLogger(__name__)

ONLY_ROUTE = """That's the only route I could find for that time, so there are no alternatives to show.

Reply YES if it is your journey, or send a different departure time (e.g. "14:30") to search again."""


def handle_journey_confirm(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    """
    Serves both AWAITING_JOURNEY_CONFIRM (direct) and AWAITING_ROUTING_CONFIRM (interchange).
    Interprets the route matched during time entry; only a missing allRoutes triggers a lookup.
    """
    command = ctx.command

    if command == "YES":
        try:
            route = matched_route(ctx.state_data)
        except MissingContextError as e:
            return missing_context_result(ctx, e)
        return HandlerResult(
            reply=f"Perfect! {TICKET_REQUEST}",
            next_state=FSMState.AWAITING_TICKET_UPLOAD,
            state_data=merge_state_data(ctx.state_data, confirmedRoute=route.to_dict(), routingConfirmed=True),
        )

    if command == "NO":
        return _offer_alternatives(ctx, deps)

    new_time = parse_journey_time(ctx.text)
    if new_time.ok:
        return suggest_route(ctx, deps, new_time.hhmm)

    return HandlerResult(reply="Please reply YES to confirm this journey, or NO to see alternatives.")


def _offer_alternatives(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    routing = RoutingRound.from_state_data(ctx.state_data)

    if routing.all_routes:
        alternatives = list(routing.first_round())
    else:
        logger.info(
            "No stored routes, fetching alternatives",
            extra={"correlation_id": ctx.correlation_id, "state": ctx.current_state.value},
        )
        try:
            alternatives = find_alternatives(ctx, deps, offset=1)
        except MissingContextError as e:
            return missing_context_result(ctx, e)
        except DownstreamError as e:
            logger.error(
                "Alternative route lookup failed",
                extra={"correlation_id": ctx.correlation_id, "dependency": e.dependency, "reason": e.code or str(e)},
            )
            return HandlerResult(reply="Unable to fetch alternative routes at this time. Please try again.")

    if not alternatives:
        return HandlerResult(reply=ONLY_ROUTE)

    logger.info(
        "Presenting alternative routes",
        extra={"correlation_id": ctx.correlation_id, "next_state": FSMState.AWAITING_ROUTING_ALTERNATIVE.value},
    )
    return HandlerResult(
        reply=format_alternatives(alternatives),
        next_state=FSMState.AWAITING_ROUTING_ALTERNATIVE,
        state_data=merge_state_data(ctx.state_data, **alternatives_state(alternatives, 1)),
    )

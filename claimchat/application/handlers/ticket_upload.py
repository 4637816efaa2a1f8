from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any

from claimchat.application.exceptions import DownstreamError, MissingContextError
from claimchat.application.handlers.base import HandlerContext, HandlerDeps, HandlerResult, missing_context_result
from claimchat.application.handlers.messages import MAIN_MENU
from claimchat.application.handlers.session import JourneyContext
from claimchat.domain.entities.conversation_state import FSMState
from claimchat.domain.entities.outbox_event import OutboxEvent, new_event
from claimchat.domain.entities.route import Route

logger = logging.getLogger(__name__)

UPLOAD_REPROMPT = """Please send a photo of your ticket, or reply SKIP to continue without one.

You can:
• Take a photo of your physical ticket
• Screenshot your e-ticket
• Upload your ticket PDF"""


def handle_ticket_upload(ctx: HandlerContext, deps: HandlerDeps) -> HandlerResult:
    if ctx.command == "SKIP":
        return _submit_journey(ctx, deps, ticket_url=None)
    if ctx.media_url:
        return _submit_journey(ctx, deps, ticket_url=ctx.media_url)
    return HandlerResult(reply=UPLOAD_REPROMPT)


def _submit_journey(ctx: HandlerContext, deps: HandlerDeps, ticket_url: str | None) -> HandlerResult:
    """
    Record journey.created, then ask for an eligibility verdict (journey already
    departed) or register it for delay tracking (journey still ahead).
    A failed downstream call keeps the journey saved and promises a later message.
    """
    try:
        journey = JourneyContext.from_state_data(
            ctx.state_data, required=("journey_id", "travel_date", "origin", "destination")
        )
    except MissingContextError as e:
        return missing_context_result(ctx, e)

    raw_route = ctx.state_data.get("confirmedRoute") or ctx.state_data.get("matchedRoute")
    route = Route.from_dict(raw_route) if isinstance(raw_route, dict) else None
    departure_at, arrival_at = _journey_times(journey, route, deps)
    user_id = ctx.user.id if ctx.user else None

    events = [
        new_event(
            "journey",
            journey.journey_id,
            "journey.created",
            {
                "journey_id": journey.journey_id,
                "user_id": user_id,
                "origin_crs": journey.origin,
                "destination_crs": journey.destination,
                "departure_datetime": departure_at.isoformat() if departure_at else None,
                "arrival_datetime": arrival_at.isoformat() if arrival_at else None,
                "legs": [leg.to_dict() for leg in route.legs] if route else [],
                "ticket_url": ticket_url,
            },
            correlation_id=ctx.correlation_id,
            causation_id=ctx.message_id,
        )
    ]

    if departure_at is not None and departure_at > deps.now():
        outcome, follow_up = _register_tracking(ctx, deps, journey, route, user_id)
    else:
        outcome, follow_up = _check_eligibility(ctx, deps, journey, route, user_id)
    if follow_up is not None:
        events.append(follow_up)

    return HandlerResult(
        reply=f"✓ Journey submitted successfully!\n\n{outcome}\n\nWhat would you like to do next?\n\n{MAIN_MENU}",
        next_state=FSMState.AUTHENTICATED,
        state_data={"lastJourneyId": journey.journey_id},
        events=events,
    )


def _check_eligibility(
    ctx: HandlerContext,
    deps: HandlerDeps,
    journey: JourneyContext,
    route: Route | None,
    user_id: str | None,
) -> tuple[str, OutboxEvent | None]:
    try:
        verdict = deps.eligibility.check_eligibility(journey.journey_id, journey.travel_date, route, ctx.correlation_id)
    except DownstreamError as e:
        logger.error(
            "Eligibility check failed",
            extra={"correlation_id": ctx.correlation_id, "dependency": e.dependency, "reason": e.code or str(e)},
        )
        return "We're checking your journey eligibility now. We'll message you later with the result.", None

    if not verdict.delay_data_available:
        return (
            "We're still processing delay data for this journey. "
            "We'll check your eligibility and message you with the result within 24-48 hours.",
            None,
        )

    payload: dict[str, Any] = {
        "journey_id": journey.journey_id,
        "user_id": user_id,
        "eligible": verdict.eligible,
        "delay_minutes": verdict.delay_minutes,
    }
    if verdict.eligible:
        payload["compensation_amount"] = verdict.compensation_amount
        text = "Good news! Your journey is eligible for compensation."
        if verdict.delay_minutes is not None:
            text += f"\n\nYour train was delayed by {verdict.delay_minutes} minutes."
        if verdict.compensation_amount:
            text += f"\n\nEstimated compensation: {verdict.compensation_amount}"
        text += "\n\nWe'll process your claim and be in touch within 5-10 working days."
    else:
        payload["reason"] = verdict.reason
        text = "I'm sorry, but your journey does not qualify for compensation."
        if verdict.delay_minutes is not None:
            text += f"\n\nYour train was delayed by {verdict.delay_minutes} minutes, which is under the minimum threshold."

    event = new_event(
        "journey",
        journey.journey_id,
        "journey.eligibility_confirmed",
        payload,
        correlation_id=ctx.correlation_id,
        causation_id=ctx.message_id,
    )
    return text, event


def _register_tracking(
    ctx: HandlerContext,
    deps: HandlerDeps,
    journey: JourneyContext,
    route: Route | None,
    user_id: str | None,
) -> tuple[str, OutboxEvent | None]:
    try:
        tracking_id = deps.tracking.register_journey(
            journey.journey_id, user_id, journey.travel_date, route, ctx.correlation_id
        )
    except DownstreamError as e:
        logger.error(
            "Tracking registration failed",
            extra={"correlation_id": ctx.correlation_id, "dependency": e.dependency, "reason": e.code or str(e)},
        )
        return "We'll start tracking it shortly and notify you if there's a delay.", None

    event = new_event(
        "journey",
        journey.journey_id,
        "journey.tracking_registered",
        {"journey_id": journey.journey_id, "user_id": user_id, "tracking_id": tracking_id},
        correlation_id=ctx.correlation_id,
        causation_id=ctx.message_id,
    )
    return "Your journey is in the future, so we'll track it and message you if there's a delay.", event


def _journey_times(
    journey: JourneyContext, route: Route | None, deps: HandlerDeps
) -> tuple[datetime | None, datetime | None]:
    try:
        travel_date = date.fromisoformat(journey.travel_date)
    except (TypeError, ValueError):
        return None, None

    departure = _to_time((route.departure if route else None) or journey.departure_time)
    if departure is None:
        return None, None
    departure_at = datetime.combine(travel_date, departure, tzinfo=deps.timezone)

    arrival = _to_time(route.arrival if route else None)
    if arrival is None:
        return departure_at, None
    arrival_at = datetime.combine(travel_date, arrival, tzinfo=deps.timezone)
    if arrival_at < departure_at:
        # overnight
        arrival_at += timedelta(days=1)
    return departure_at, arrival_at


def _to_time(value: str | None) -> time | None:
    if not value:
        return None
    try:
        return datetime.strptime(value[:5], "%H:%M").time()
    except ValueError:
        return None

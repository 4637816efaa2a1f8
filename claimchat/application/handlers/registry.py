from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from claimchat.application.exceptions import HandlerNotRegisteredError
from claimchat.application.handlers.authenticated import handle_authenticated
from claimchat.application.handlers.base import Handler
from claimchat.application.handlers.error import handle_error
from claimchat.application.handlers.journey_confirm import handle_journey_confirm
from claimchat.application.handlers.journey_date import handle_journey_date
from claimchat.application.handlers.journey_stations import handle_journey_stations
from claimchat.application.handlers.journey_time import handle_journey_time
from claimchat.application.handlers.otp import handle_otp
from claimchat.application.handlers.routing_alternative import handle_routing_alternative
from claimchat.application.handlers.start import handle_start
from claimchat.application.handlers.terms import handle_terms
from claimchat.application.handlers.ticket_upload import handle_ticket_upload
from claimchat.domain.entities.conversation_state import FSMState

HANDLERS: Mapping[FSMState, Handler] = MappingProxyType(
    {
        FSMState.START: handle_start,
        FSMState.AWAITING_TERMS: handle_terms,
        FSMState.AWAITING_OTP: handle_otp,
        FSMState.AUTHENTICATED: handle_authenticated,
        FSMState.AWAITING_JOURNEY_DATE: handle_journey_date,
        FSMState.AWAITING_JOURNEY_STATIONS: handle_journey_stations,
        FSMState.AWAITING_JOURNEY_TIME: handle_journey_time,
        FSMState.AWAITING_JOURNEY_CONFIRM: handle_journey_confirm,
        FSMState.AWAITING_ROUTING_CONFIRM: handle_journey_confirm,
        FSMState.AWAITING_ROUTING_ALTERNATIVE: handle_routing_alternative,
        FSMState.AWAITING_TICKET_UPLOAD: handle_ticket_upload,
        FSMState.ERROR: handle_error,
    }
)

_unregistered = set(FSMState) - set(HANDLERS)
if _unregistered:
    raise RuntimeError(f"FSM states without a handler: {sorted(s.value for s in _unregistered)}")


def get_handler(state: FSMState, handlers: Mapping[FSMState, Handler] = HANDLERS) -> Handler:
    """Pure lookup. A miss is a wiring bug, so it raises instead of defaulting."""
    try:
        return handlers[state]
    except KeyError:
        raise HandlerNotRegisteredError(f"No handler registered for state: {getattr(state, 'value', state)}") from None

"""
Tests for FSM dispatch.
"""

from __future__ import annotations

import pytest

from claimchat.application.exceptions import HandlerNotRegisteredError
from claimchat.application.handlers.journey_confirm import handle_journey_confirm
from claimchat.application.handlers.registry import HANDLERS, get_handler
from claimchat.domain.entities.conversation_state import FSMState


@pytest.mark.parametrize("state", list(FSMState))
def test_every_state_has_a_handler(state):
    assert callable(get_handler(state))


def test_unregistered_state_fails_fast():
    partial = {state: handler for state, handler in HANDLERS.items() if state != FSMState.ERROR}

    with pytest.raises(HandlerNotRegisteredError) as exc_info:
        get_handler(FSMState.ERROR, partial)
    assert "ERROR" in str(exc_info.value)


def test_unknown_value_is_not_registered():
    with pytest.raises(HandlerNotRegisteredError):
        get_handler("NOT_A_STATE")  # type: ignore[arg-type]


def test_both_confirmation_states_share_one_handler():
    assert get_handler(FSMState.AWAITING_JOURNEY_CONFIRM) is handle_journey_confirm
    assert get_handler(FSMState.AWAITING_ROUTING_CONFIRM) is handle_journey_confirm


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        HANDLERS[FSMState.ERROR] = lambda ctx, deps: None  # type: ignore[index]

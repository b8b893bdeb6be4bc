# tests/test_transitions.py
import pytest

from softphone.client.transitions import (
    IN_CALL_STATES,
    TERMINATING_EVENTS,
    CallEvent,
    CallState,
    classify_status,
    next_state,
)
from softphone.models.call_log import CallStatus


@pytest.mark.parametrize("state", IN_CALL_STATES)
def test_every_termination_event_ends_an_active_call(state):
    for event in TERMINATING_EVENTS:
        assert next_state(state, event) == CallState.ENDED


def test_termination_events_ignored_once_ended():
    for event in TERMINATING_EVENTS:
        assert next_state(CallState.ENDED, event) is None


def test_token_refresh_never_changes_state():
    for state in CallState:
        assert next_state(state, CallEvent.TOKEN_WILL_EXPIRE) is None


def test_dial_only_from_ready():
    for state in CallState:
        expected = CallState.CONNECTING if state == CallState.READY else None
        assert next_state(state, CallEvent.DIAL) == expected


def test_device_lifecycle():
    assert next_state(CallState.IDLE, CallEvent.START) == CallState.INITIALIZING
    assert next_state(CallState.INITIALIZING, CallEvent.REGISTERED) == CallState.READY
    assert next_state(CallState.INITIALIZING, CallEvent.DEVICE_ERROR) == CallState.ERROR
    assert next_state(CallState.ERROR, CallEvent.RETRY) == CallState.INITIALIZING
    assert next_state(CallState.READY, CallEvent.RETRY) is None


def test_reset_after_call():
    assert next_state(CallState.ENDED, CallEvent.RESET) == CallState.READY
    assert next_state(CallState.ENDED, CallEvent.RESET_TO_ERROR) == CallState.ERROR
    assert next_state(CallState.CONNECTED, CallEvent.RESET) is None


def test_classify_status():
    assert classify_status(12, CallEvent.HANGUP) == CallStatus.COMPLETED
    assert classify_status(3, CallEvent.CALL_ERROR) == CallStatus.COMPLETED
    assert classify_status(0, CallEvent.BUSY) == CallStatus.BUSY
    assert classify_status(0, CallEvent.CALL_ERROR) == CallStatus.FAILED
    assert classify_status(0, CallEvent.DIAL_FAILED) == CallStatus.FAILED
    assert classify_status(0, CallEvent.REJECT) == CallStatus.NO_ANSWER
    assert classify_status(0, CallEvent.CANCEL) == CallStatus.NO_ANSWER
    assert classify_status(0, CallEvent.HANGUP) == CallStatus.NO_ANSWER

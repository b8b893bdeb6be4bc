# softphone/client/transitions.py
from enum import Enum
from typing import Dict, Optional, Tuple

from softphone.models.call_log import CallStatus


class CallState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    CONNECTING = "connecting"
    RINGING = "ringing"
    CONNECTED = "connected"
    ENDED = "ended"
    ERROR = "error"


class CallEvent(str, Enum):
    # device lifecycle
    START = "start"
    RETRY = "retry"
    REGISTERED = "registered"
    DEVICE_ERROR = "device_error"
    TOKEN_WILL_EXPIRE = "token_will_expire"

    # one call attempt
    DIAL = "dial"
    DIAL_FAILED = "dial_failed"
    RINGING = "ringing"
    ACCEPT = "accept"
    DISCONNECT = "disconnect"
    CANCEL = "cancel"
    REJECT = "reject"
    BUSY = "busy"
    CALL_ERROR = "call_error"
    HANGUP = "hangup"

    # display timer after a call
    RESET = "reset"
    RESET_TO_ERROR = "reset_to_error"


# Events that end a call attempt. Whichever reaches ENDED first wins.
TERMINATING_EVENTS = (
    CallEvent.DIAL_FAILED,
    CallEvent.DISCONNECT,
    CallEvent.CANCEL,
    CallEvent.REJECT,
    CallEvent.BUSY,
    CallEvent.CALL_ERROR,
    CallEvent.HANGUP,
)

IN_CALL_STATES = (CallState.CONNECTING, CallState.RINGING, CallState.CONNECTED)


def _build_table() -> Dict[Tuple[CallState, CallEvent], CallState]:
    table = {
        (CallState.IDLE, CallEvent.START): CallState.INITIALIZING,
        (CallState.ERROR, CallEvent.RETRY): CallState.INITIALIZING,
        (CallState.INITIALIZING, CallEvent.REGISTERED): CallState.READY,
        (CallState.INITIALIZING, CallEvent.DEVICE_ERROR): CallState.ERROR,
        (CallState.READY, CallEvent.DEVICE_ERROR): CallState.ERROR,
        (CallState.READY, CallEvent.DIAL): CallState.CONNECTING,
        (CallState.CONNECTING, CallEvent.RINGING): CallState.RINGING,
        # Twilio may skip "ringing" when the callee picks up immediately
        (CallState.CONNECTING, CallEvent.ACCEPT): CallState.CONNECTED,
        (CallState.RINGING, CallEvent.ACCEPT): CallState.CONNECTED,
        (CallState.ENDED, CallEvent.RESET): CallState.READY,
        (CallState.ENDED, CallEvent.RESET_TO_ERROR): CallState.ERROR,
    }
    for state in IN_CALL_STATES:
        for event in TERMINATING_EVENTS:
            table[(state, event)] = CallState.ENDED
    return table


TRANSITIONS: Dict[Tuple[CallState, CallEvent], CallState] = _build_table()


def next_state(state: CallState, event: CallEvent) -> Optional[CallState]:
    """Target state for `event` in `state`, or None if the event is ignored there."""
    return TRANSITIONS.get((state, event))


def classify_status(duration_seconds: int, ended_by: CallEvent) -> CallStatus:
    """
    Outcome of a finished attempt.

    Any talk time counts as completed. Otherwise only an explicit busy or
    failure signal from the provider is reported as such; a reject, cancel
    or plain hangup is a no-answer.
    """
    if duration_seconds > 0:
        return CallStatus.COMPLETED
    if ended_by == CallEvent.BUSY:
        return CallStatus.BUSY
    if ended_by in (CallEvent.CALL_ERROR, CallEvent.DIAL_FAILED):
        return CallStatus.FAILED
    return CallStatus.NO_ANSWER

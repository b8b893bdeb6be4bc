# softphone/client/controller.py
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple

from softphone.client.phone_numbers import DEFAULT_COUNTRY_CODE, full_number, split_phone_number
from softphone.client.signaling import (
    CallLeg,
    CallLogEntry,
    CallLogWriter,
    DeviceFactory,
    SignalingDevice,
    TokenProvider,
)
from softphone.client.transitions import (
    IN_CALL_STATES,
    TERMINATING_EVENTS,
    CallEvent,
    CallState,
    classify_status,
    next_state,
)
from softphone.errors import DialRejected, SignalingError

logger = logging.getLogger(__name__)

DISPLAY_DELAY_SECONDS = 2.0

Clock = Callable[[], datetime]
Scheduler = Callable[[float, Callable[[], None]], Any]
Notifier = Callable[[str, str], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _thread_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


def _log_notifier(level: str, message: str) -> None:
    logger.info("[%s] %s", level, message)


def format_duration(seconds: int) -> str:
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins:02d}:{secs:02d}"


@dataclass
class CallSession:
    """One outbound call attempt. Lives only inside the controller."""

    phone_number: str
    country_code: str
    lead_id: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    leg: Optional[CallLeg] = None
    connected_at: Optional[datetime] = None
    provider_call_id: Optional[str] = None
    muted: bool = False

    @property
    def destination(self) -> str:
        return full_number(self.country_code, self.phone_number)


class CallSessionController:
    """
    State machine behind the browser dial pad.

    Owns the signaling device and the current call session; nothing else
    gets a reference to either. Every provider callback is turned into a
    CallEvent and run through the transition table, so an event that does
    not apply to the current state is simply ignored. That is what makes
    racing termination events (hangup vs. disconnect vs. error) produce a
    single log write: only the first one can move the call to ENDED.

    Collaborators are injected:

    - token_provider: returns a fresh TokenGrant (POST /twilio/token)
    - device_factory: builds the provider device from a token
    - log_writer: persists the CallLogEntry (POST /call-logs)
    - clock / scheduler / notifier: wall clock, delayed callbacks, and
      user-facing messages
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        device_factory: DeviceFactory,
        log_writer: CallLogWriter,
        *,
        clock: Clock = _utcnow,
        scheduler: Scheduler = _thread_scheduler,
        notifier: Notifier = _log_notifier,
        display_delay: float = DISPLAY_DELAY_SECONDS,
    ):
        self._token_provider = token_provider
        self._device_factory = device_factory
        self._log_writer = log_writer
        self._clock = clock
        self._scheduler = scheduler
        self._notify = notifier
        self._display_delay = display_delay

        self._lock = threading.RLock()
        self._state = CallState.IDLE
        self._device: Optional[SignalingDevice] = None
        self._device_generation = 0
        self._registered = False
        self._session: Optional[CallSession] = None
        self._reset_handle: Any = None
        self._last_duration = 0

        self.identity: Optional[str] = None
        self.last_error: Optional[str] = None

        # dial pad fields
        self.phone_number = ""
        self.country_code = DEFAULT_COUNTRY_CODE
        self.lead_id: Optional[str] = None

    # ------------------------------------------------------------------ #
    # read-only view
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def is_registered(self) -> bool:
        return self._registered

    @property
    def is_muted(self) -> bool:
        session = self._session
        return bool(session and session.muted)

    @property
    def in_call(self) -> bool:
        return self._state in IN_CALL_STATES

    def elapsed_seconds(self) -> int:
        """Talk time so far, from the wall-clock connect timestamp."""
        with self._lock:
            session = self._session
            if session is not None and session.connected_at is not None:
                delta = self._clock() - session.connected_at
                return max(0, int(delta.total_seconds()))
            if self._state == CallState.ENDED:
                return self._last_duration
            return 0

    # ------------------------------------------------------------------ #
    # transitions
    # ------------------------------------------------------------------ #

    def _transition(self, event: CallEvent) -> Optional[CallState]:
        """
        Apply `event` if the table allows it. Returns the previous state,
        or None when the event is a no-op in the current state.
        """
        with self._lock:
            target = next_state(self._state, event)
            if target is None:
                logger.debug("Ignoring %s in state %s", event.value, self._state.value)
                return None
            previous = self._state
            self._state = target
        logger.info("Call state %s -> %s (%s)", previous.value, target.value, event.value)
        return previous

    # ------------------------------------------------------------------ #
    # device lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> bool:
        """First use: fetch a token and register the device."""
        if self._transition(CallEvent.START) is None:
            return False
        self._initialize_device()
        return True

    def retry(self) -> bool:
        """Explicit retry offered to the user while in ERROR."""
        if self._transition(CallEvent.RETRY) is None:
            return False
        self.last_error = None
        self._initialize_device()
        return True

    def _initialize_device(self) -> None:
        with self._lock:
            old_device = self._device
            self._device = None
            self._registered = False
            self._device_generation += 1
            generation = self._device_generation

        if old_device is not None:
            self._destroy_device(old_device)

        def on_device_event(event: CallEvent, **payload: Any) -> None:
            self._on_device_event(generation, event, **payload)

        try:
            grant = self._token_provider()
            self.identity = grant.identity
            device = self._device_factory(grant.token, on_device_event)
            with self._lock:
                self._device = device
            device.register()
        except Exception as exc:
            logger.exception("Device initialization error")
            self._device_failed(exc, user_message="Could not initialize phone")

    def _on_device_event(self, generation: int, event: CallEvent, **payload: Any) -> None:
        with self._lock:
            if generation != self._device_generation:
                logger.debug("Ignoring %s from a destroyed device", event.value)
                return

        if event == CallEvent.REGISTERED:
            with self._lock:
                self._registered = True
                self._transition(CallEvent.REGISTERED)
            logger.info("Device registered as %s", self.identity)
        elif event == CallEvent.DEVICE_ERROR:
            error = payload.get("error") or "Unknown device error"
            logger.error("Device error: %s", error)
            self._device_failed(SignalingError(str(error)))
        elif event == CallEvent.TOKEN_WILL_EXPIRE:
            logger.info("Token will expire, refreshing...")
            self._scheduler(0, self.refresh_token)
        else:
            logger.debug("Unhandled device event %s", event.value)

    def _device_failed(self, exc: Exception, user_message: Optional[str] = None) -> None:
        """
        The signaling channel is gone. A call in flight ends as failed and
        the display reset then lands in ERROR instead of READY.
        """
        message = str(exc) or exc.__class__.__name__
        with self._lock:
            self.last_error = message
            self._registered = False
            session = self._session if self._state in IN_CALL_STATES else None
            leg = session.leg if session is not None else None

        if session is not None:
            self._finish(session, CallEvent.CALL_ERROR)
            if leg is not None:
                self._disconnect_leg(leg)
        else:
            self._transition(CallEvent.DEVICE_ERROR)
        self._notify("error", user_message or f"Twilio error: {message}")

    def refresh_token(self) -> bool:
        """
        Swap a fresh token into the live device. Never touches the call
        state; a failure is logged and the old token stays in place.
        """
        device = self._device
        if device is None:
            return False
        try:
            grant = self._token_provider()
            device.update_token(grant.token)
        except Exception:
            logger.exception("Token refresh failed")
            return False
        logger.info("Token refreshed for %s", self.identity)
        return True

    # ------------------------------------------------------------------ #
    # dialing
    # ------------------------------------------------------------------ #

    def prefill(self, raw_phone: Optional[str], lead_id: Optional[str] = None) -> Tuple[str, str]:
        """Fill the dial pad from a lead's stored number."""
        if raw_phone:
            self.country_code, self.phone_number = split_phone_number(raw_phone)
        if lead_id:
            self.lead_id = lead_id
        return self.country_code, self.phone_number

    def dial(
        self,
        phone_number: Optional[str] = None,
        country_code: Optional[str] = None,
        lead_id: Optional[str] = None,
    ) -> None:
        """
        Place an outbound call.

        Raises DialRejected with a user-facing message if there is no number,
        the device is not registered, or a call is already in flight.
        """
        if phone_number is not None:
            self.phone_number = phone_number
        if country_code is not None:
            self.country_code = country_code
        if lead_id is not None:
            self.lead_id = lead_id

        if not self.phone_number or not self.phone_number.strip():
            self._notify("error", "Enter a phone number")
            raise DialRejected("Enter a phone number")

        with self._lock:
            if self._state in IN_CALL_STATES:
                self._notify("error", "A call is already in progress")
                raise DialRejected("A call is already in progress")

            # Dialing again during the "call ended" display skips the wait
            if self._state == CallState.ENDED:
                self._reset_after_call()

            device = self._device
            if device is None or not self._registered or self._state != CallState.READY:
                self._notify("error", "Phone not ready - try reloading")
                raise DialRejected("Phone not ready - try reloading")

            session = CallSession(
                phone_number=self.phone_number.strip(),
                country_code=self.country_code,
                lead_id=self.lead_id,
            )
            self._session = session
            self.last_error = None
            self._transition(CallEvent.DIAL)

        def on_call_event(event: CallEvent, **payload: Any) -> None:
            self._on_call_event(session, event, **payload)

        try:
            leg = device.connect({"To": session.destination}, on_call_event)
        except Exception:
            logger.exception("Start call error")
            self._notify("error", "Could not start call")
            self._finish(session, CallEvent.DIAL_FAILED)
            return

        with self._lock:
            session.leg = leg
            stale = self._session is not session

        # Hung up (or failed) while connect() was still in progress
        if stale:
            self._disconnect_leg(leg)

    def _on_call_event(self, session: CallSession, event: CallEvent, **payload: Any) -> None:
        with self._lock:
            if session is not self._session:
                logger.debug("Ignoring %s for finished call %s", event.value, session.id)
                return

        if event == CallEvent.RINGING:
            self._transition(CallEvent.RINGING)
        elif event == CallEvent.ACCEPT:
            self._on_accept(session, payload.get("call_sid"))
        elif event in TERMINATING_EVENTS:
            if event == CallEvent.REJECT:
                self._notify("error", "Call rejected")
            elif event == CallEvent.BUSY:
                self._notify("error", "Line busy")
            elif event == CallEvent.CALL_ERROR:
                self._notify("error", f"Call error: {payload.get('error') or 'unknown'}")
            self._finish(session, event)
        else:
            logger.debug("Unhandled call event %s", event.value)

    def _on_accept(self, session: CallSession, call_sid: Optional[str]) -> None:
        with self._lock:
            if self._transition(CallEvent.ACCEPT) is None:
                return
            # The CallSid is only reliably available once the call is answered
            if not call_sid and session.leg is not None:
                call_sid = (session.leg.parameters or {}).get("CallSid")
            session.provider_call_id = call_sid
            session.connected_at = self._clock()
        logger.info("Call accepted, call_sid=%s", call_sid)
        self._notify("success", "Connected!")

    # ------------------------------------------------------------------ #
    # in-call controls
    # ------------------------------------------------------------------ #

    def hangup(self) -> bool:
        """
        User hangup. Moves the call to ENDED right away; the provider's own
        disconnect event arriving afterwards is a no-op.
        """
        with self._lock:
            session = self._session
            if session is None or self._state not in IN_CALL_STATES:
                return False
            leg = session.leg

        ended = self._finish(session, CallEvent.HANGUP)
        if leg is not None:
            self._disconnect_leg(leg)
        return ended

    def set_muted(self, muted: bool) -> bool:
        with self._lock:
            session = self._session
            if self._state != CallState.CONNECTED or session is None or session.leg is None:
                return False
            session.leg.mute(muted)
            session.muted = muted
        self._notify("info", "Microphone off" if muted else "Microphone on")
        return True

    def toggle_mute(self) -> bool:
        return self.set_muted(not self.is_muted)

    # ------------------------------------------------------------------ #
    # termination
    # ------------------------------------------------------------------ #

    def _finish(self, session: CallSession, event: CallEvent) -> bool:
        """
        Single path into ENDED: compute duration and status, drop the
        session, write the log. Returns False if another event got there
        first.
        """
        with self._lock:
            if session is not self._session:
                return False
            if self._transition(event) is None:
                return False

            duration = 0
            if session.connected_at is not None:
                elapsed = self._clock() - session.connected_at
                duration = max(0, int(elapsed.total_seconds()))
            status = classify_status(duration, event)

            entry = CallLogEntry(
                phone_number=session.phone_number,
                country_code=session.country_code,
                duration_seconds=duration,
                status=status.value,
                lead_id=session.lead_id,
                provider_call_id=session.provider_call_id,
            )
            self._session = None
            self._last_duration = duration

        logger.info(
            "Call ended by %s: status=%s duration=%ss call_sid=%s",
            event.value,
            status.value,
            duration,
            session.provider_call_id,
        )
        self._write_log(entry)

        if duration > 0:
            self._notify("success", f"Call ended ({format_duration(duration)})")

        with self._lock:
            if self._state == CallState.ENDED:
                self._reset_handle = self._scheduler(self._display_delay, self._reset_after_call)
        return True

    def _write_log(self, entry: CallLogEntry) -> None:
        try:
            self._log_writer(entry)
        except Exception:
            logger.exception("Error logging call %s", entry.provider_call_id)
            self._notify("error", "Could not save call log")

    def _reset_after_call(self) -> None:
        with self._lock:
            handle, self._reset_handle = self._reset_handle, None
            if handle is not None and hasattr(handle, "cancel"):
                handle.cancel()
            event = CallEvent.RESET if self._registered else CallEvent.RESET_TO_ERROR
            if self._transition(event) is not None:
                self._last_duration = 0

    @staticmethod
    def _disconnect_leg(leg: CallLeg) -> None:
        try:
            leg.disconnect()
        except Exception:
            logger.exception("Error disconnecting call leg")

    @staticmethod
    def _destroy_device(device: SignalingDevice) -> None:
        try:
            device.destroy()
        except Exception:
            logger.exception("Error destroying device")

    # ------------------------------------------------------------------ #
    # teardown
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """
        Tear everything down: end any call (with its log write), destroy the
        device, and go back to IDLE.
        """
        self.hangup()
        with self._lock:
            handle, self._reset_handle = self._reset_handle, None
            if handle is not None and hasattr(handle, "cancel"):
                handle.cancel()
            device, self._device = self._device, None
            self._device_generation += 1
            self._registered = False
            self._session = None
            self._state = CallState.IDLE
        if device is not None:
            self._destroy_device(device)
        logger.info("Call controller closed")

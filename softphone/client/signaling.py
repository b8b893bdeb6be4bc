# softphone/client/signaling.py
"""
Interfaces the call controller needs from the realtime signaling provider.

The production adapter wraps Twilio's Voice SDK (a Device that registers
with the token and places calls); tests use in-memory fakes. Provider
callbacks are delivered through the `on_event` callables handed over at
construction / connect time, always as a CallEvent plus keyword payload.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from softphone.client.transitions import CallEvent

EventCallback = Callable[..., None]


@dataclass(frozen=True)
class TokenGrant:
    token: str
    identity: str


@dataclass(frozen=True)
class CallLogEntry:
    """Body of the single log write made when a call attempt ends."""

    phone_number: str
    country_code: str
    duration_seconds: int
    status: str
    lead_id: Optional[str] = None
    provider_call_id: Optional[str] = None
    direction: str = "outbound"

    def as_payload(self) -> Dict[str, Any]:
        return {
            "phone_number": self.phone_number,
            "country_code": self.country_code,
            "duration_seconds": self.duration_seconds,
            "direction": self.direction,
            "status": self.status,
            "lead_id": self.lead_id,
            "provider_call_id": self.provider_call_id,
        }


class CallLeg(Protocol):
    """The active media leg of one outbound call."""

    parameters: Mapping[str, str]

    def disconnect(self) -> None: ...

    def mute(self, muted: bool) -> None: ...


class SignalingDevice(Protocol):
    def register(self) -> None: ...

    def connect(self, params: Mapping[str, str], on_event: EventCallback) -> CallLeg: ...

    def update_token(self, token: str) -> None: ...

    def destroy(self) -> None: ...


class DeviceFactory(Protocol):
    def __call__(self, token: str, on_event: EventCallback) -> SignalingDevice: ...


class TokenProvider(Protocol):
    def __call__(self) -> TokenGrant: ...


class CallLogWriter(Protocol):
    def __call__(self, entry: CallLogEntry) -> None: ...


__all__ = [
    "CallEvent",
    "CallLeg",
    "CallLogEntry",
    "CallLogWriter",
    "DeviceFactory",
    "EventCallback",
    "SignalingDevice",
    "TokenGrant",
    "TokenProvider",
]

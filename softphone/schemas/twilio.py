# softphone/schemas/twilio.py
from typing import Mapping, Optional

from pydantic import BaseModel


class TokenResponse(BaseModel):
    token: str
    identity: str


class HangupRequest(BaseModel):
    call_sid: Optional[str] = None


class RecordingStatusCallback(BaseModel):
    """Form payload Twilio posts to the recordingStatusCallback URL."""

    CallSid: Optional[str] = None
    RecordingSid: Optional[str] = None
    RecordingUrl: Optional[str] = None
    RecordingStatus: Optional[str] = None
    RecordingDuration: Optional[str] = None

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "RecordingStatusCallback":
        return cls(**{name: form.get(name) or None for name in cls.model_fields})

    @property
    def is_completed(self) -> bool:
        return (
            self.RecordingStatus == "completed"
            and bool(self.RecordingUrl)
            and bool(self.CallSid)
        )

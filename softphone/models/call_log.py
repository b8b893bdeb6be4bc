# softphone/models/call_log.py
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text

from softphone.models.base import Base


class CallDirection(str, Enum):
    OUTBOUND = "outbound"
    INBOUND = "inbound"


class CallStatus(str, Enum):
    COMPLETED = "completed"
    NO_ANSWER = "no_answer"
    BUSY = "busy"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallLog(Base):
    __tablename__ = "call_logs"

    id = Column(Integer, primary_key=True, index=True)

    # CRM user that placed the call
    seller_id = Column(String(64), nullable=False, index=True)

    phone_number = Column(String(50), nullable=False)
    country_code = Column(String(8), nullable=False)
    duration_seconds = Column(Integer, nullable=False, default=0)

    # Store enums as plain strings; CallDirection / CallStatus are used in Python
    direction = Column(String(16), nullable=False, default=CallDirection.OUTBOUND.value)
    status = Column(String(16), nullable=False, default=CallStatus.NO_ANSWER.value)

    # Opaque reference into the CRM's leads; not a FK, leads live elsewhere
    lead_id = Column(String(64), nullable=True, index=True)

    # Twilio CallSid; the key every enrichment write is matched on
    provider_call_id = Column(String(64), unique=True, index=True, nullable=True)

    # Enrichment, filled in later by the recording webhook / transcription
    recording_url = Column(String(512), nullable=True)
    recording_sid = Column(String(64), nullable=True)
    transcript = Column(Text, nullable=True)
    transcript_created_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

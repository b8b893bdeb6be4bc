# softphone/schemas/call_log.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from softphone.models.call_log import CallDirection, CallStatus


class CallLogCreate(BaseModel):
    phone_number: str = Field(min_length=1, max_length=50)
    country_code: str = Field(min_length=1, max_length=8)
    duration_seconds: int = Field(default=0, ge=0)
    direction: CallDirection = CallDirection.OUTBOUND
    status: CallStatus
    lead_id: Optional[str] = None
    provider_call_id: Optional[str] = None


class CallLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    seller_id: str
    phone_number: str
    country_code: str
    duration_seconds: int
    direction: CallDirection
    status: CallStatus
    lead_id: Optional[str] = None
    provider_call_id: Optional[str] = None
    recording_url: Optional[str] = None
    recording_sid: Optional[str] = None
    transcript: Optional[str] = None
    transcript_created_at: Optional[datetime] = None
    created_at: datetime


class PaginatedCallLogs(BaseModel):
    items: List[CallLogOut]
    total: int
    page: int
    page_size: int

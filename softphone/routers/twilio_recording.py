# softphone/routers/twilio_recording.py
import logging
from typing import Dict

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from softphone.config import Settings, get_settings
from softphone.db.session import get_db
from softphone.schemas.twilio import RecordingStatusCallback
from softphone.services.recording_service import handle_recording_status
from softphone.services.transcription_service import transcribe_recording
from softphone.services.twilio_signature import verified_twilio_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["twilio-recording"])


@router.post("/recording-status")
def twilio_recording_status(
    background_tasks: BackgroundTasks,
    form: Dict[str, str] = Depends(verified_twilio_form),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Twilio recordingStatusCallback.

    Twilio may call this more than once for the same recording, and before
    the browser has written the call log. We always acknowledge right away;
    transcription runs as a background task after the response is sent and
    the response never waits on it.
    """
    payload = RecordingStatusCallback.from_form(form)

    if handle_recording_status(db, payload):
        if settings.missing_rest_credentials():
            logger.warning("Twilio credentials missing, not transcribing %s", payload.CallSid)
        else:
            background_tasks.add_task(
                transcribe_recording,
                payload.CallSid,
                payload.RecordingUrl,
            )

    return {"success": True}

# softphone/services/recording_service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from softphone.schemas.twilio import RecordingStatusCallback
from softphone.services.call_log_service import attach_recording

logger = logging.getLogger(__name__)


def handle_recording_status(db: Session, payload: RecordingStatusCallback) -> bool:
    """
    Apply a recording-status callback to the call log.

    - Only "completed" callbacks with a URL and CallSid do anything.
    - The stored URL gets ".mp3" appended for direct playback.
    - A missing row (the browser's log write has not landed yet) is an
      accepted gap: we acknowledge and drop the enrichment.

    Returns True when the recording was attached and a transcription should
    be started.
    """
    logger.info(
        "Recording status callback: call_sid=%s recording_sid=%s status=%s duration=%s",
        payload.CallSid,
        payload.RecordingSid,
        payload.RecordingStatus,
        payload.RecordingDuration,
    )

    if not payload.is_completed:
        return False

    try:
        call_log = attach_recording(
            db,
            provider_call_id=payload.CallSid,
            recording_url=f"{payload.RecordingUrl}.mp3",
            recording_sid=payload.RecordingSid,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error saving recording URL for call %s", payload.CallSid)
        return False

    return call_log is not None

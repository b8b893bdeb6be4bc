# softphone/services/call_log_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from softphone.models.call_log import CallLog
from softphone.schemas.call_log import CallLogCreate

logger = logging.getLogger(__name__)


def get_call_log_by_provider_call_id(
    db: Session, provider_call_id: str
) -> Optional[CallLog]:
    return db.query(CallLog).filter_by(provider_call_id=provider_call_id).first()


def create_call_log(db: Session, seller_id: str, payload: CallLogCreate) -> CallLog:
    """
    Persist the base row for one finished call attempt.

    The controller writes exactly once per attempt, but if the same
    provider_call_id is posted twice we hand back the existing row instead
    of tripping the unique index.
    """
    if payload.provider_call_id:
        existing = get_call_log_by_provider_call_id(db, payload.provider_call_id)
        if existing is not None:
            logger.info(
                "Call log for %s already exists (id=%s), not creating another",
                payload.provider_call_id,
                existing.id,
            )
            return existing

    call_log = CallLog(
        seller_id=seller_id,
        phone_number=payload.phone_number,
        country_code=payload.country_code,
        duration_seconds=payload.duration_seconds,
        direction=payload.direction.value,
        status=payload.status.value,
        lead_id=payload.lead_id,
        provider_call_id=payload.provider_call_id,
    )
    db.add(call_log)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent write for the same provider_call_id landed first
        db.rollback()
        existing = get_call_log_by_provider_call_id(db, payload.provider_call_id or "")
        if existing is None:
            raise
        logger.info("Call log for %s created concurrently, returning it", payload.provider_call_id)
        return existing
    db.refresh(call_log)
    logger.info(
        "Call logged: id=%s status=%s duration=%ss call_sid=%s",
        call_log.id,
        call_log.status,
        call_log.duration_seconds,
        call_log.provider_call_id,
    )
    return call_log


def attach_recording(
    db: Session,
    provider_call_id: str,
    recording_url: str,
    recording_sid: Optional[str] = None,
) -> Optional[CallLog]:
    """
    Attach a finished recording to the call log matched by CallSid.

    Returns None when the row has not landed yet; the enrichment is dropped.
    Applying the same update twice leaves the row unchanged.
    """
    call_log = get_call_log_by_provider_call_id(db, provider_call_id)
    if call_log is None:
        logger.warning("No call log for %s yet, dropping recording", provider_call_id)
        return None

    changed = False
    if recording_url and call_log.recording_url != recording_url:
        call_log.recording_url = recording_url
        changed = True
    if recording_sid and call_log.recording_sid != recording_sid:
        call_log.recording_sid = recording_sid
        changed = True

    if changed:
        db.add(call_log)
        db.commit()
        db.refresh(call_log)
        logger.info("Recording URL saved for call %s", provider_call_id)
    return call_log


def attach_transcript(
    db: Session,
    provider_call_id: str,
    transcript: str,
    created_at: Optional[datetime] = None,
) -> Optional[CallLog]:
    call_log = get_call_log_by_provider_call_id(db, provider_call_id)
    if call_log is None:
        logger.warning("No call log for %s, dropping transcript", provider_call_id)
        return None

    # Never clear an existing transcript with an empty one
    if not transcript or call_log.transcript == transcript:
        return call_log

    call_log.transcript = transcript
    call_log.transcript_created_at = created_at or datetime.now(timezone.utc)
    db.add(call_log)
    db.commit()
    db.refresh(call_log)
    logger.info("Transcript saved for call %s", provider_call_id)
    return call_log


def list_call_logs(
    db: Session,
    seller_id: str,
    lead_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[CallLog], int]:
    query = db.query(CallLog).filter(CallLog.seller_id == seller_id)
    if lead_id:
        query = query.filter(CallLog.lead_id == lead_id)
    total = query.count()
    items = (
        query.order_by(CallLog.created_at.desc(), CallLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return items, total

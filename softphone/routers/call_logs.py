# softphone/routers/call_logs.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from softphone.auth import AuthenticatedUser, get_current_user
from softphone.db.session import get_db
from softphone.schemas.call_log import CallLogCreate, CallLogOut, PaginatedCallLogs
from softphone.services.call_log_service import create_call_log, list_call_logs

router = APIRouter(prefix="/call-logs", tags=["call-logs"])


@router.post("", response_model=CallLogOut, status_code=201)
def create_call_log_endpoint(
    payload: CallLogCreate,
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Base log write from the softphone, sent once when a call attempt ends.
    The seller is always the authenticated user, never taken from the body.
    """
    return create_call_log(db, seller_id=user.id, payload=payload)


@router.get("", response_model=PaginatedCallLogs)
def list_call_logs_endpoint(
    lead_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    items, total = list_call_logs(
        db, seller_id=user.id, lead_id=lead_id, page=page, page_size=page_size
    )
    return PaginatedCallLogs(items=items, total=total, page=page, page_size=page_size)

# tests/test_db_basic.py
from sqlalchemy import text

from softphone.db.session import engine
from softphone.models import CallLog


def test_db_can_create_schema(db):
    # Simple connectivity test
    with engine.connect() as conn:
        result = conn.execute(text("SELECT 1"))
        assert result.scalar() == 1


def test_create_and_read_call_log(db):
    call_log = CallLog(
        seller_id="seller-1",
        phone_number="12345678",
        country_code="+45",
        duration_seconds=12,
        status="completed",
        provider_call_id="CA_DB_BASIC",
    )
    db.add(call_log)
    db.commit()
    db.refresh(call_log)

    assert call_log.id is not None
    assert call_log.direction == "outbound"
    assert call_log.created_at is not None

    fetched = db.query(CallLog).filter_by(provider_call_id="CA_DB_BASIC").first()
    assert fetched is not None
    assert fetched.duration_seconds == 12
    assert fetched.recording_url is None
    assert fetched.transcript is None

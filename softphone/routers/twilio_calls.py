# softphone/routers/twilio_calls.py
import logging

import requests
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from softphone.auth import AuthenticatedUser, get_current_user
from softphone.schemas.twilio import HangupRequest
from softphone.services.twilio_client import TwilioClient, get_twilio_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["twilio-calls"])


@router.post("/hangup")
def hangup_call(
    payload: HangupRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    twilio_client: TwilioClient = Depends(get_twilio_client),
):
    """
    End a call from the server, for when the browser leg is already gone.
    No call_sid means there is nothing to end.
    """
    if payload.call_sid:
        try:
            twilio_client.hangup_call(payload.call_sid)
        except Exception:
            logger.exception("Hangup error for %s", payload.call_sid)
            return JSONResponse(status_code=500, content={"error": "Failed to end call"})
    return {"success": True}


@router.get("/recordings/{recording_sid}", response_class=Response)
def get_recording(
    recording_sid: str,
    user: AuthenticatedUser = Depends(get_current_user),
    twilio_client: TwilioClient = Depends(get_twilio_client),
):
    """
    Proxy a recording so the browser can play it without Twilio credentials.
    """
    try:
        upstream = twilio_client.fetch_recording(recording_sid)
    except requests.RequestException:
        logger.exception("Recording proxy error for %s", recording_sid)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch recording"})

    if not upstream.ok:
        logger.error(
            "Twilio recording fetch failed: %s %s", upstream.status_code, upstream.reason
        )
        return JSONResponse(status_code=upstream.status_code, content={"error": "Recording not found"})

    return Response(
        content=upstream.content,
        media_type="audio/mpeg",
        headers={"Cache-Control": "private, max-age=3600"},
    )

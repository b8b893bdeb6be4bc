# softphone/routers/twilio_voice.py
from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from softphone.config import Settings, get_settings
from softphone.services.twiml_service import build_message_response, build_voice_response
from softphone.services.twilio_signature import verified_twilio_form

router = APIRouter(prefix="/twilio", tags=["twilio-voice"])


@router.post("/voice", response_class=Response)
def twilio_voice(
    form: Dict[str, str] = Depends(verified_twilio_form),
    settings: Settings = Depends(get_settings),
):
    """
    TwiML app voice URL, hit by Twilio when the browser places a call.

    Twilio forwards the `To` param the browser passed to Device.connect().
    """
    vr = build_voice_response(form.get("To"), form.get("From"), settings)
    return Response(content=str(vr), media_type="application/xml")


@router.get("/voice", response_class=Response)
def twilio_voice_liveness(settings: Settings = Depends(get_settings)):
    vr = build_message_response(settings.VOICE_LIVENESS_MESSAGE, settings)
    return Response(content=str(vr), media_type="application/xml")

# softphone/services/twiml_service.py
import logging
import re
from typing import Optional

from twilio.twiml.voice_response import VoiceResponse

from softphone.config import Settings
from softphone.errors import ConfigurationError

logger = logging.getLogger(__name__)

RECORDING_STATUS_PATH = "/twilio/recording-status"

# Browser dials arrive as "+4512345678"; a client identity ("client:user_x")
# or anything else is not something we bridge to the phone network.
_DIALABLE = re.compile(r"^\+\d+$")


def is_dialable(to: Optional[str]) -> bool:
    return bool(to) and bool(_DIALABLE.match(to.strip()))


def build_dial_response(to: str, settings: Settings) -> VoiceResponse:
    """
    <Dial> the public number with both legs recorded.

    Recording completion is reported to our recording-status webhook.
    """
    missing = settings.missing_voice_settings()
    if missing:
        raise ConfigurationError(missing)

    vr = VoiceResponse()
    dial = vr.dial(
        caller_id=settings.TWILIO_PHONE_NUMBER,
        timeout=settings.DIAL_TIMEOUT_SECONDS,
        answer_on_bridge=True,  # only billed once the callee answers
        record="record-from-answer-dual",
        recording_status_callback=settings.callback_url(RECORDING_STATUS_PATH),
        recording_status_callback_event="completed",
    )
    dial.number(to.strip())
    return vr


def build_message_response(message: str, settings: Settings, hangup: bool = False) -> VoiceResponse:
    vr = VoiceResponse()
    vr.say(message, language=settings.VOICE_LANGUAGE)
    if hangup:
        vr.hangup()
    return vr


def build_voice_response(to: Optional[str], from_: Optional[str], settings: Settings) -> VoiceResponse:
    """
    Call instructions for a call placed from the browser.

    Never raises: any failure becomes a spoken apology followed by <Hangup/>,
    so Twilio always gets a document that ends the call cleanly.
    """
    logger.info("Voice webhook called - To: %s, From: %s", to, from_)
    try:
        if is_dialable(to):
            return build_dial_response(to, settings)
        return build_message_response(settings.VOICE_GREETING, settings)
    except Exception:
        logger.exception("Voice webhook error")
        return build_message_response(settings.VOICE_ERROR_MESSAGE, settings, hangup=True)

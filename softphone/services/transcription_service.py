# softphone/services/transcription_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import requests
from openai import OpenAI
from sqlalchemy.orm import Session

from softphone.config import Settings, get_settings
from softphone.db.session import SessionLocal
from softphone.errors import ConfigurationError, EnrichmentFailure
from softphone.services.call_log_service import attach_transcript

logger = logging.getLogger(__name__)


def fetch_recording_audio(
    recording_url: str,
    account_sid: str,
    auth_token: str,
    timeout: int = 30,
) -> bytes:
    """
    Download the MP3 behind a Twilio RecordingUrl.

    RecordingUrl comes without an extension; asking for ".mp3" gets us a
    format the speech-to-text API accepts.
    """
    mp3_url = f"{recording_url}.mp3"
    logger.info("Fetching recording from %s", mp3_url)

    try:
        response = requests.get(mp3_url, auth=(account_sid, auth_token), timeout=timeout)
    except requests.RequestException as exc:
        raise EnrichmentFailure(f"Recording fetch failed: {exc}") from exc

    if not response.ok:
        raise EnrichmentFailure(
            f"Failed to fetch recording: {response.status_code} {response.reason}"
        )

    logger.info("Recording fetched, size: %s bytes", len(response.content))
    return response.content


def transcribe_audio(audio: bytes, settings: Settings) -> str:
    """
    Speech-to-text via OpenAI, primed with common voicemail / greeting
    phrases so short answering-machine messages come out right.
    """
    if not settings.OPENAI_API_KEY:
        raise ConfigurationError(["OPENAI_API_KEY"], component="Transcription")

    client = OpenAI(api_key=settings.OPENAI_API_KEY)
    result = client.audio.transcriptions.create(
        file=("recording.mp3", audio, "audio/mpeg"),
        model=settings.TRANSCRIPTION_MODEL,
        language=settings.TRANSCRIPTION_LANGUAGE,
        response_format="text",
        prompt=settings.TRANSCRIPTION_PROMPT,
    )
    # response_format="text" gives a plain string; older clients wrap it
    text = result if isinstance(result, str) else getattr(result, "text", "")
    return (text or "").strip()


def transcribe_recording(
    provider_call_id: str,
    recording_url: str,
    settings: Optional[Settings] = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> Optional[str]:
    """
    Background job started by the recording webhook.

    Best effort: every failure is logged and swallowed, nothing is retried.
    Returns the transcript when one was stored, for callers that care.
    """
    settings = settings or get_settings()

    try:
        missing = settings.missing_transcription_credentials()
        if missing:
            raise ConfigurationError(missing, component="Transcription")

        audio = fetch_recording_audio(
            recording_url,
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            timeout=settings.RECORDING_FETCH_TIMEOUT_SECONDS,
        )

        logger.info("Starting transcription for call %s", provider_call_id)
        transcript = transcribe_audio(audio, settings)
        if not transcript:
            raise EnrichmentFailure("Empty transcript", provider_call_id=provider_call_id)

        db = session_factory()
        try:
            call_log = attach_transcript(
                db,
                provider_call_id=provider_call_id,
                transcript=transcript,
                created_at=datetime.now(timezone.utc),
            )
        finally:
            db.close()

        if call_log is None:
            return None
        logger.info("Transcription completed for call %s: %s...", provider_call_id, transcript[:100])
        return transcript

    except ConfigurationError as exc:
        logger.error("Transcription skipped for call %s: %s", provider_call_id, exc)
    except EnrichmentFailure as exc:
        logger.warning("Transcription aborted for call %s: %s", provider_call_id, exc)
    except Exception:
        logger.exception("Background transcription failed for call %s", provider_call_id)
    return None

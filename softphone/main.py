# softphone/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text

from softphone.config import get_settings
from softphone.db.session import engine
from softphone.errors import ConfigurationError, Unauthenticated, WebhookValidationError
from softphone.logging_config import configure_logging, mask
from softphone.models import Base
from softphone.routers import call_logs, token, twilio_calls, twilio_recording, twilio_voice

settings = get_settings()
logger = logging.getLogger(__name__)


def log_configuration_problems() -> None:
    """Surface missing credentials once, loudly, at boot."""
    logger.info(
        "Twilio account %s, API key %s, TwiML app %s",
        mask(settings.TWILIO_ACCOUNT_SID),
        mask(settings.TWILIO_API_KEY),
        mask(settings.TWILIO_TWIML_APP_SID),
    )
    checks = {
        "token issuing": settings.missing_token_credentials(),
        "webhooks and recordings": settings.missing_rest_credentials(),
        "voice instructions": settings.missing_voice_settings(),
        "transcription": settings.missing_transcription_credentials(),
    }
    for feature, missing in checks.items():
        if missing:
            logger.error("%s disabled, missing: %s", feature, ", ".join(missing))


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    log_configuration_problems()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# Routers
app.include_router(token.router)
app.include_router(twilio_voice.router)
app.include_router(twilio_recording.router)
app.include_router(twilio_calls.router)
app.include_router(call_logs.router)


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return JSONResponse(status_code=401, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(WebhookValidationError)
async def webhook_validation_handler(request: Request, exc: WebhookValidationError):
    return PlainTextResponse("Forbidden", status_code=403)


@app.get("/health")
def health_check():
    db_status = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "app": settings.APP_NAME,
        "env": settings.ENV,
        "database": db_status,
    }

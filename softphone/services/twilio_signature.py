# softphone/services/twilio_signature.py
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from fastapi import Depends, Request
from twilio.request_validator import RequestValidator

from softphone.config import Settings, get_settings
from softphone.errors import WebhookValidationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def candidate_urls(request_url: str, path_with_query: str, settings: Settings) -> List[str]:
    """
    URLs Twilio may have signed.

    Behind a proxy / tunnel the URL we see is not the public one Twilio
    called, so we also try APP_BASE_URL + path.
    """
    urls = [request_url]
    if settings.APP_BASE_URL:
        urls.append(settings.callback_url(path_with_query))
    return list(dict.fromkeys(urls))


def validate_twilio_signature(
    *,
    auth_token: Optional[str],
    signature: Optional[str],
    urls: Iterable[str],
    params: Mapping[str, str],
) -> None:
    """
    Raise WebhookValidationError unless `signature` matches one of `urls`.

    No auth token means we cannot validate anything, so every request is
    rejected rather than trusted.
    """
    if not auth_token:
        logger.error("TWILIO_AUTH_TOKEN not configured - rejecting webhook")
        raise WebhookValidationError("TWILIO_AUTH_TOKEN not configured")

    if not signature:
        logger.error("Missing %s header", SIGNATURE_HEADER)
        raise WebhookValidationError("Missing signature")

    validator = RequestValidator(auth_token)
    for url in urls:
        if validator.validate(url, dict(params), signature):
            return

    logger.error("Invalid Twilio signature - rejecting request")
    raise WebhookValidationError("Invalid signature")


async def verified_twilio_form(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Dict[str, str]:
    """
    FastAPI dependency: read the form body and check it came from Twilio.

    Handlers read their fields from the returned dict, so nothing from the
    body is used before the signature has been checked.
    """
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"

    validate_twilio_signature(
        auth_token=settings.TWILIO_AUTH_TOKEN,
        signature=request.headers.get(SIGNATURE_HEADER),
        urls=candidate_urls(str(request.url), path, settings),
        params=params,
    )
    return params

# softphone/services/twilio_client.py
import logging
from typing import Optional

import requests
from twilio.rest import Client as TwilioSDKClient

from softphone.config import get_settings
from softphone.errors import ConfigurationError

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioClient:
    """
    Thin wrapper around the Twilio REST API.

    This makes it easy to:
    - centralize config (account SID, auth token)
    - mock in tests by replacing this class with a fake.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        timeout: int = 30,
    ):
        self._client = TwilioSDKClient(account_sid, auth_token)
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._timeout = timeout

    def hangup_call(self, call_sid: str) -> None:
        """
        Complete an in-progress call from the server side.
        """
        self._client.calls(call_sid).update(status="completed")
        logger.info("Call %s completed via REST", call_sid)

    def fetch_recording(self, recording_sid: str) -> requests.Response:
        """
        Download a recording as MP3. Recordings are access-controlled, so the
        request carries the account credentials.
        """
        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Recordings/{recording_sid}.mp3"
        return requests.get(
            url,
            auth=(self._account_sid, self._auth_token),
            timeout=self._timeout,
        )


_client: Optional[TwilioClient] = None


def get_twilio_client() -> TwilioClient:
    """
    FastAPI dependency to get a configured TwilioClient.
    Raises ConfigurationError if configuration is incomplete.
    """
    global _client
    settings = get_settings()

    missing = settings.missing_rest_credentials()
    if missing:
        raise ConfigurationError(missing)

    if _client is None:
        _client = TwilioClient(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            timeout=settings.RECORDING_FETCH_TIMEOUT_SECONDS,
        )
    return _client

# softphone/client/api.py
import logging

import requests

from softphone.client.signaling import CallLogEntry, TokenGrant
from softphone.errors import SignalingError

logger = logging.getLogger(__name__)


class SoftphoneApi:
    """
    HTTP side of the softphone: fetches Voice tokens and writes call logs.

    Both calls carry the CRM session as a bearer token.
    """

    def __init__(self, base_url: str, session_token: str, timeout: int = 10):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http = requests.Session()
        self._http.headers["Authorization"] = f"Bearer {session_token}"

    def fetch_token(self) -> TokenGrant:
        try:
            resp = self._http.post(f"{self._base_url}/twilio/token", timeout=self._timeout)
        except requests.RequestException as exc:
            raise SignalingError(f"Could not fetch token: {exc}") from exc

        if not resp.ok:
            try:
                detail = resp.json().get("error")
            except ValueError:
                detail = None
            raise SignalingError(detail or f"Could not fetch token ({resp.status_code})")

        data = resp.json()
        return TokenGrant(token=data["token"], identity=data["identity"])

    def write_call_log(self, entry: CallLogEntry) -> None:
        resp = self._http.post(
            f"{self._base_url}/call-logs",
            json=entry.as_payload(),
            timeout=self._timeout,
        )
        resp.raise_for_status()
        logger.info(
            "Call logged: duration=%ss number=%s call_sid=%s",
            entry.duration_seconds,
            entry.phone_number,
            entry.provider_call_id,
        )

# softphone/services/token_service.py
import logging
import re

from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VoiceGrant

from softphone.auth import AuthenticatedUser
from softphone.client.signaling import TokenGrant
from softphone.config import Settings
from softphone.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Twilio puts the identity into SIP headers, which reject anything fancier
_UNSAFE_IDENTITY_CHARS = re.compile(r"[^A-Za-z0-9_]")


def derive_identity(user_id: str) -> str:
    """
    Deterministic Twilio client identity for a CRM user.

    "3f2a-9c" -> "user_3f2a_9c"
    """
    return "user_" + _UNSAFE_IDENTITY_CHARS.sub("_", str(user_id))


def issue_access_token(user: AuthenticatedUser, settings: Settings) -> TokenGrant:
    """
    Mint a short-lived Voice access token bound to the user's identity.

    The grant only allows outgoing calls through our TwiML app; inbound
    calls to the browser are out of scope.
    """
    missing = settings.missing_token_credentials()
    if missing:
        raise ConfigurationError(missing)

    identity = derive_identity(user.id)

    token = AccessToken(
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_API_KEY,
        settings.TWILIO_API_SECRET,
        identity=identity,
        ttl=settings.ACCESS_TOKEN_TTL_SECONDS,
    )
    token.add_grant(
        VoiceGrant(
            outgoing_application_sid=settings.TWILIO_TWIML_APP_SID,
            incoming_allow=False,
        )
    )

    jwt_token = token.to_jwt()
    if isinstance(jwt_token, bytes):
        jwt_token = jwt_token.decode("utf-8")

    logger.info("Token generated for identity %s", identity)
    return TokenGrant(token=jwt_token, identity=identity)

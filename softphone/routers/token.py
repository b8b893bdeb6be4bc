# softphone/routers/token.py
from fastapi import APIRouter, Depends

from softphone.auth import AuthenticatedUser, get_current_user
from softphone.config import Settings, get_settings
from softphone.schemas.twilio import TokenResponse
from softphone.services.token_service import issue_access_token

router = APIRouter(prefix="/twilio", tags=["twilio-token"])


@router.post("/token", response_model=TokenResponse)
def create_token(
    user: AuthenticatedUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """
    Voice access token for the browser softphone.

    - 401 without a CRM session
    - 500 if the Twilio API key / TwiML app are not configured
    """
    grant = issue_access_token(user, settings)
    return TokenResponse(token=grant.token, identity=grant.identity)

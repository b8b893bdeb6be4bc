# softphone/auth.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from softphone.config import Settings, get_settings
from softphone.errors import Unauthenticated

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """The CRM identity behind a request. We only ever need the id."""

    id: str


def create_session_token(
    user_id: str,
    settings: Optional[Settings] = None,
    expires_minutes: int = 60,
) -> str:
    """
    Mint a CRM-style session token. The CRM normally does this; we keep it
    here for scripts and tests.
    """
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> AuthenticatedUser:
    try:
        payload = jwt.decode(
            token, settings.SESSION_SECRET, algorithms=[settings.SESSION_ALGORITHM]
        )
    except JWTError as exc:
        raise Unauthenticated("Invalid session") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Invalid session")
    return AuthenticatedUser(id=str(user_id))


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return decode_session_token(credentials.credentials, settings)

"""Session management using signed JWT tokens.

Sessions are stored as signed JWT tokens in HTTP-only cookies.
The tokens contain:
- User ID
- Session creation time
- Expiration time

## Security

- Tokens are signed with the application secret key
- Tokens expire after a configurable period (default: 30 days)
- Cookies are HTTP-only, Secure in production, SameSite=Lax

## Token Structure

```json
{
  "sub": "user-id",
  "iat": 1234567890,
  "exp": 1235172690,
  "type": "session"
}
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import JWTError, jwt

from city_journal.config import get_settings

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "session"


@dataclass
class SessionData:
    """Data stored in the session token."""

    user_id: str
    created_at: datetime
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        """Check if the session has expired."""
        return datetime.now(timezone.utc) > self.expires_at


def create_session_token(
    user_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token for a user.

    Args:
        user_id: The user's id
        expires_delta: Custom expiration time (or use default from settings)

    Returns:
        Signed JWT token string
    """
    settings = get_settings()

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.session_max_age_seconds)

    expires_at = now + expires_delta

    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "type": TOKEN_TYPE,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_session_token(token: str) -> SessionData | None:
    """Verify and decode a session token.

    Args:
        token: The JWT token string

    Returns:
        SessionData if valid, None if invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    try:
        user_id = str(payload["sub"])
        created_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Invalid token payload: {e}")
        return None

    if not user_id:
        return None

    session = SessionData(
        user_id=user_id,
        created_at=created_at,
        expires_at=expires_at,
    )

    if session.is_expired:
        logger.debug("Session token expired")
        return None

    return session


def set_session_cookie(response: Response, user_id: str) -> None:
    """Issue a session token for ``user_id`` and attach it as a cookie."""
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(user_id),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

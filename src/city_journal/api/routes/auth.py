"""Authentication routes.

## Email and Password

1. POST /api/auth/register - Create an account
2. POST /api/auth/login - Check credentials and set the session cookie

## GitHub OAuth Flow

1. GET /api/auth/github/login - Redirect to GitHub consent screen
2. GET /api/auth/github/callback - Handle OAuth callback

## Session Management

- POST /api/auth/logout - Clear session
- GET /api/auth/me - Get current user info

Sessions are stored in HTTP-only cookies. The session token is a signed JWT
containing the user ID and expiration time.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from city_journal.auth.dependencies import get_current_user_optional
from city_journal.auth.github import GitHubOAuth, get_github_oauth
from city_journal.auth.passwords import hash_password, verify_password
from city_journal.auth.session import clear_session_cookie, set_session_cookie
from city_journal.database.connection import get_db_session
from city_journal.database.models import User
from city_journal.errors import DuplicateUser, InvalidRequest, Unauthorized

logger = logging.getLogger(__name__)

router = APIRouter()


class UserResponse(BaseModel):
    """User information response."""

    id: str
    email: str
    name: str | None
    image: str | None = None
    created_at: datetime | None = None


class AuthStatusResponse(BaseModel):
    """Authentication status response."""

    authenticated: bool
    user: UserResponse | None = None


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image_url,
        created_at=user.created_at,
    )


# Store state tokens temporarily (in production, use Redis or similar)
_oauth_states: dict[str, datetime] = {}

STATE_MAX_AGE_SECONDS = 600


def _prune_states(now: datetime) -> None:
    """Drop state tokens from logins that were never completed."""
    expired = [
        state
        for state, created in _oauth_states.items()
        if (now - created).total_seconds() >= STATE_MAX_AGE_SECONDS
    ]
    for state in expired:
        del _oauth_states[state]


def _generate_state() -> str:
    """Generate a random state token for OAuth."""
    now = datetime.now(timezone.utc)
    _prune_states(now)

    state = secrets.token_urlsafe(32)
    _oauth_states[state] = now
    return state


def _verify_state(state: str) -> bool:
    """Verify and consume a state token."""
    if state not in _oauth_states:
        return False

    created = _oauth_states.pop(state)
    age = (datetime.now(timezone.utc) - created).total_seconds()
    return age < STATE_MAX_AGE_SECONDS


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """Create an email/password account."""
    if not data.name or not data.email or not data.password:
        raise InvalidRequest("Please provide name, email and password")

    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalar_one_or_none() is not None:
        raise DuplicateUser()

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        await db.rollback()
        raise DuplicateUser()
    await db.refresh(user)

    logger.info(f"Registered user {user.email}")

    return RegisterResponse(message="Registration successful", user=_user_response(user))


@router.post("/login", response_model=UserResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Log in with email and password."""
    result = await db.execute(
        select(User).where(User.email == data.email, User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(data.password, user.password_hash):
        logger.info(f"Failed login for {data.email}")
        raise Unauthorized("Invalid email or password")

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    set_session_cookie(response, user.id)
    logger.info(f"User {user.email} logged in")

    return _user_response(user)


@router.get("/github/login")
async def github_login(
    oauth: GitHubOAuth = Depends(get_github_oauth),
) -> RedirectResponse:
    """Initiate GitHub OAuth login.

    Redirects the user to GitHub's consent screen. After consent, GitHub
    redirects back to /api/auth/github/callback.
    """
    if not oauth.is_configured:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="GitHub OAuth not configured",
        )

    state = _generate_state()
    return RedirectResponse(url=oauth.get_authorization_url(state=state))


@router.get("/github/callback")
async def github_callback(
    code: str,
    state: str,
    oauth: GitHubOAuth = Depends(get_github_oauth),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    """Handle GitHub OAuth callback.

    Exchanges the authorization code for a token, finds or creates the user,
    and sets the session cookie.
    """
    if not _verify_state(state):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired state token",
        )

    try:
        access_token = await oauth.exchange_code(code)
        user_info = await oauth.get_user_info(access_token)
    except ValueError as e:
        logger.error(f"GitHub sign-in failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="GitHub sign-in failed",
        )

    if not user_info.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="GitHub account has no verified email address",
        )

    # Match on GitHub id first, then link an existing email/password account
    result = await db.execute(select(User).where(User.github_id == user_info.id))
    user = result.scalar_one_or_none()
    if user is None:
        result = await db.execute(select(User).where(User.email == user_info.email))
        user = result.scalar_one_or_none()

    now = datetime.now(timezone.utc)
    if user:
        user.github_id = user_info.id
        user.name = user.name or user_info.name
        user.image_url = user_info.avatar_url or user.image_url
        user.last_login_at = now
    else:
        user = User(
            github_id=user_info.id,
            email=user_info.email,
            name=user_info.name,
            image_url=user_info.avatar_url,
            last_login_at=now,
        )
        db.add(user)

    await db.commit()

    redirect = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    set_session_cookie(redirect, user.id)

    logger.info(f"User {user.email} logged in via GitHub")

    return redirect


@router.post("/logout")
async def logout(
    response: Response,
    user: User | None = Depends(get_current_user_optional),
) -> dict:
    """Log out the current user by clearing the session cookie."""
    if user:
        logger.info(f"User {user.email} logged out")

    clear_session_cookie(response)

    return {"status": "logged_out"}


@router.get("/me", response_model=AuthStatusResponse)
async def get_auth_status(
    user: User | None = Depends(get_current_user_optional),
) -> AuthStatusResponse:
    """Get the current authentication status and user info."""
    if user:
        return AuthStatusResponse(authenticated=True, user=_user_response(user))

    return AuthStatusResponse(authenticated=False)

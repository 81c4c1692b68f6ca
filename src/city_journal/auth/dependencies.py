"""FastAPI dependencies for authentication.

These dependencies resolve the caller's identity from the session cookie.
Route handlers must take the user id from here and never from request
parameters.

## Usage

```python
from fastapi import Depends
from city_journal.auth import get_current_user, get_current_user_id
from city_journal.database import User

@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return {"email": user.email, "name": user.name}

@router.get("/statistics")
async def stats(user_id: str = Depends(get_current_user_id)):
    ...
```
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from city_journal.auth.session import SessionData, verify_session_token
from city_journal.config import get_settings
from city_journal.database.connection import get_db_session
from city_journal.database.models import User
from city_journal.errors import Unauthorized

logger = logging.getLogger(__name__)


async def get_session_data(request: Request) -> SessionData | None:
    """Extract and verify session data from the session cookie.

    Returns None if no session or invalid session.
    """
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        return None

    return verify_session_token(token)


async def get_current_user_optional(
    session: SessionData | None = Depends(get_session_data),
    db: AsyncSession = Depends(get_db_session),
) -> User | None:
    """Get the current user if logged in, or None.

    Use this for routes that work with or without authentication.
    """
    if session is None:
        return None

    result = await db.execute(
        select(User).where(User.id == session.user_id, User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning(f"Session for non-existent/inactive user: {session.user_id}")
        return None

    return user


async def get_current_user(
    user: User | None = Depends(get_current_user_optional),
) -> User:
    """Get the current authenticated user.

    Raises 401 if not authenticated.
    """
    if user is None:
        raise Unauthorized("Not authenticated")

    return user


async def get_current_user_id(
    user: User = Depends(get_current_user),
) -> str:
    """Get the authenticated caller's id. Never returns an empty id."""
    if not user.id:
        raise Unauthorized("Not authenticated")
    return user.id

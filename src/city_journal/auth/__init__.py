"""Authentication module for the city journal.

Provides email/password and GitHub OAuth sign-in, plus session management.

## Sign-in Paths

1. Email and password: ``POST /api/auth/register`` then ``POST /api/auth/login``
2. GitHub: ``GET /api/auth/github/login`` redirects to GitHub, which redirects
   back to ``/api/auth/github/callback``

Both paths end by setting the same signed session cookie.

## Security

- Passwords are stored as salted PBKDF2 hashes
- Sessions use signed JWT cookies
- HTTPS required in production
"""

from city_journal.auth.dependencies import (
    get_current_user,
    get_current_user_id,
    get_current_user_optional,
)
from city_journal.auth.github import GitHubOAuth, get_github_oauth
from city_journal.auth.passwords import hash_password, verify_password
from city_journal.auth.session import (
    SessionData,
    create_session_token,
    verify_session_token,
)

__all__ = [
    "GitHubOAuth",
    "get_github_oauth",
    "hash_password",
    "verify_password",
    "create_session_token",
    "verify_session_token",
    "SessionData",
    "get_current_user",
    "get_current_user_id",
    "get_current_user_optional",
]

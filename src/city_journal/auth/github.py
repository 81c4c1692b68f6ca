"""GitHub OAuth authentication.

Implements the OAuth 2.0 authorization code flow for GitHub sign-in.

## Required Setup

1. Register an OAuth app under GitHub Settings > Developer settings
2. Set the callback URL to ``GITHUB_REDIRECT_URI``
3. Set GITHUB_CLIENT_ID and GITHUB_CLIENT_SECRET environment variables

## OAuth Endpoints

- Authorization: https://github.com/login/oauth/authorize
- Token: https://github.com/login/oauth/access_token
- User: https://api.github.com/user
- Emails: https://api.github.com/user/emails (when the profile email is private)

## Scopes Used

- read:user: Profile name and avatar
- user:email: Primary verified email address
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlencode

import httpx

from city_journal.config import get_settings

logger = logging.getLogger(__name__)

# GitHub OAuth endpoints
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
GITHUB_EMAILS_URL = "https://api.github.com/user/emails"

DEFAULT_SCOPES = ["read:user", "user:email"]


@dataclass
class GitHubUserInfo:
    """User information from GitHub."""

    id: str
    login: str
    email: str | None
    name: str | None
    avatar_url: str | None


class GitHubOAuth:
    """GitHub OAuth client.

    Example:
        ```python
        oauth = GitHubOAuth()

        # Generate authorization URL
        auth_url = oauth.get_authorization_url(state="random-state")
        # Redirect user to auth_url

        # Handle callback
        access_token = await oauth.exchange_code(code)
        user_info = await oauth.get_user_info(access_token)
        ```
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        scopes: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GitHub OAuth client.

        Args:
            client_id: OAuth app client ID (or from settings)
            client_secret: OAuth app client secret (or from settings)
            redirect_uri: OAuth callback URL (or from settings)
            scopes: OAuth scopes to request
            transport: Custom httpx transport (used by tests)
        """
        settings = get_settings()

        self.client_id = client_id or settings.github_client_id
        self.client_secret = client_secret or settings.github_client_secret
        self.redirect_uri = redirect_uri or settings.github_redirect_uri
        self.scopes = scopes or DEFAULT_SCOPES
        self.transport = transport

        if not self.client_id or not self.client_secret:
            logger.warning(
                "GitHub OAuth not configured. Set GITHUB_CLIENT_ID and "
                "GITHUB_CLIENT_SECRET environment variables."
            )

    @property
    def is_configured(self) -> bool:
        """Check if GitHub OAuth is properly configured."""
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=15.0)

    def get_authorization_url(self, state: str) -> str:
        """Generate the GitHub authorization URL.

        Args:
            state: Random state parameter for CSRF protection

        Returns:
            URL to redirect the user to
        """
        if not self.is_configured:
            raise RuntimeError("GitHub OAuth not configured")

        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "state": state,
            "allow_signup": "true",
        }
        return f"{GITHUB_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            ValueError: If token exchange fails
        """
        if not self.is_configured:
            raise RuntimeError("GitHub OAuth not configured")

        async with self._client() as client:
            response = await client.post(
                GITHUB_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Accept": "application/json"},
            )

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.text}")
            raise ValueError(f"Token exchange failed: {response.status_code}")

        data = response.json()
        # GitHub reports bad codes with a 200 and an "error" field
        if "error" in data or "access_token" not in data:
            logger.error(f"Token exchange rejected: {data.get('error_description', data)}")
            raise ValueError(f"Token exchange rejected: {data.get('error', 'no token')}")

        return data["access_token"]

    async def get_user_info(self, access_token: str) -> GitHubUserInfo:
        """Get the signed-in user's profile.

        Falls back to the emails endpoint when the profile email is private.

        Raises:
            ValueError: If a request fails
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }

        async with self._client() as client:
            response = await client.get(GITHUB_USER_URL, headers=headers)
            if response.status_code != 200:
                logger.error(f"User info request failed: {response.text}")
                raise ValueError(f"User info request failed: {response.status_code}")
            data = response.json()

            email = data.get("email")
            if not email:
                email = await self._get_primary_email(client, headers)

        return GitHubUserInfo(
            id=str(data["id"]),
            login=data.get("login", ""),
            email=email.lower() if email else None,
            name=data.get("name") or data.get("login"),
            avatar_url=data.get("avatar_url"),
        )

    async def _get_primary_email(
        self, client: httpx.AsyncClient, headers: dict[str, str]
    ) -> str | None:
        response = await client.get(GITHUB_EMAILS_URL, headers=headers)
        if response.status_code != 200:
            logger.warning(f"Email lookup failed: {response.status_code}")
            return None

        for entry in response.json():
            if entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        return None


@lru_cache
def get_github_oauth() -> GitHubOAuth:
    """Get cached GitHub OAuth client instance."""
    return GitHubOAuth()

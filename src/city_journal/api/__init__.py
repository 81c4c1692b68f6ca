"""FastAPI application and routes.

This module provides the REST API for the city journal.

## API Structure

- /api/auth - Registration, password login, GitHub OAuth, logout
- /api/calendar - The signed-in user's calendar document and its records
- /api/weather - Current weather for a city
- /api/statistics - Days per city and keyword counts over a date range

## Authentication

All /api/calendar and /api/statistics endpoints require the session cookie.
Sessions are created by password login or the GitHub OAuth callback.
"""

from city_journal.api.app import create_app

__all__ = ["create_app"]

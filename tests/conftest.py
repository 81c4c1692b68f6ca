"""Pytest fixtures for city journal tests.

This module provides test fixtures that ensure:
1. No external API calls are made (WeatherAPI.com, GitHub)
2. Every test gets its own in-memory SQLite database
3. Isolated test environment with controlled configuration
"""

import os
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Set test environment BEFORE importing application modules
# This ensures no real services are contacted during test collection
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GITHUB_CLIENT_ID", "test-client-id")
os.environ.setdefault("GITHUB_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("WEATHER_API_KEY", "test-weather-key")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from city_journal.api.app import create_app
from city_journal.database.connection import Database
from city_journal.models.weather import CurrentWeather
from city_journal.providers.base import LocationNotFound


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from city_journal.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeWeatherProvider:
    """Stands in for WeatherAPIProvider in route tests."""

    name = "fake"
    requires_api_key = True

    def __init__(self, api_key: str | None = "test-weather-key"):
        self.api_key = api_key
        self.weather: dict[str, CurrentWeather] = {
            "tokyo": CurrentWeather(temperature=18, condition="Sunny", icon="Sunny"),
        }
        self.calls: list[str] = []

    async def get_current(self, city: str) -> CurrentWeather:
        self.calls.append(city)
        try:
            return self.weather[city.strip().lower()]
        except KeyError:
            raise LocationNotFound(self.name, city)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def weather_provider() -> FakeWeatherProvider:
    return FakeWeatherProvider()


@pytest.fixture
def app(weather_provider: FakeWeatherProvider):
    """Application with a fake weather provider; the database is built by
    the lifespan from DATABASE_URL (in-memory SQLite)."""
    application = create_app()
    application.state.weather_provider = weather_provider
    return application


@pytest.fixture
def client(app) -> TestClient:
    """Anonymous test client."""
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(
    client: TestClient,
    email: str = "traveller@example.com",
    password: str = "correct horse battery staple",
    name: str = "Traveller",
) -> dict[str, Any]:
    """Create an account and log it in; the session cookie stays on ``client``."""
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text

    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    """Test client with a logged-in user."""
    register_and_login(client)
    return client


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database with all tables created."""
    db = Database.from_url("sqlite+aiosqlite:///:memory:")
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database):
    async with database.session() as session:
        yield session


# =============================================================================
# Calendar Fixtures
# =============================================================================


@pytest.fixture
def tokyo_events() -> dict[str, Any]:
    """Two days in Tokyo, spelled with different casing, each with a meeting."""
    return {
        "2024-03-01": {
            "date": "2024-03-01",
            "cityRecords": [
                {
                    "id": "r1",
                    "city": "Tokyo",
                    "activities": [{"id": "a1", "description": "team meeting"}],
                }
            ],
        },
        "2024-03-02": {
            "date": "2024-03-02",
            "cityRecords": [
                {
                    "id": "r2",
                    "city": "tokyo",
                    "activities": [{"id": "a2", "description": "Meeting with client"}],
                }
            ],
        },
    }


@pytest.fixture
def trip_events() -> dict[str, Any]:
    """A week-long trip with repeated cities and a range of activities."""
    return {
        "2024-05-01": {
            "date": "2024-05-01T00:00:00.000Z",
            "cityRecords": [
                {
                    "id": "p1",
                    "city": " Paris ",
                    "activities": [
                        {"id": "p1a", "description": "Louvre museum visit"},
                        {"id": "p1b", "description": "dinner meeting"},
                    ],
                    "weather": {"temperature": 16, "condition": "Cloudy", "icon": "Cloudy"},
                },
                {
                    "id": "p2",
                    "city": "paris",
                    "activities": [{"id": "p2a", "description": "Museum of modern art"}],
                },
            ],
        },
        "2024-05-02": {
            "date": "2024-05-02",
            "cityRecords": [
                {"id": "p3", "city": "Paris", "activities": []},
                {
                    "id": "l1",
                    "city": "Lyon",
                    "activities": [{"id": "l1a", "description": "Lunch meeting, then museum"}],
                },
            ],
        },
        "2024-05-03": {"date": "2024-05-03", "cityRecords": []},
        "2024-05-07": {
            "date": "2024-05-07",
            "cityRecords": [
                {"id": "b1", "city": "Berlin", "activities": [{"id": "b1a", "description": "Meeting"}]}
            ],
        },
    }

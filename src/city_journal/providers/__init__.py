"""Weather data providers."""

from city_journal.config import Settings
from city_journal.providers.base import (
    AuthenticationError,
    LocationNotFound,
    ProviderError,
    RateLimitError,
    WeatherProvider,
)
from city_journal.providers.weatherapi import WeatherAPIProvider


def create_weather_provider(settings: Settings) -> WeatherProvider:
    """Build the weather provider configured in settings."""
    return WeatherAPIProvider(
        api_key=settings.weather_api_key,
        base_url=settings.weather_api_base_url,
        timeout=settings.weather_timeout_seconds,
    )


__all__ = [
    "WeatherProvider",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "LocationNotFound",
    "WeatherAPIProvider",
    "create_weather_provider",
]

"""Weather lookup route.

GET /api/weather?city=Tokyo returns the current conditions the client
snapshots onto a new city record:

```json
{"temperature": 18, "condition": "Partly cloudy", "icon": "Partly cloudy"}
```
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from city_journal.models.weather import CurrentWeather
from city_journal.providers.base import (
    AuthenticationError,
    LocationNotFound,
    ProviderError,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_weather_provider(request: Request) -> WeatherProvider:
    """FastAPI dependency returning the shared weather provider."""
    provider = getattr(request.app.state, "weather_provider", None)
    if provider is None:
        raise RuntimeError("Weather provider not initialized")
    return provider


@router.get("", response_model=CurrentWeather)
async def get_current_weather(
    city: str | None = Query(default=None),
    provider: WeatherProvider = Depends(get_weather_provider),
) -> CurrentWeather:
    """Current weather for a city name."""
    if provider.requires_api_key and not provider.api_key:
        logger.error("Weather API key is missing")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Weather service not configured",
        )

    if not city or not city.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="City parameter is required",
        )

    try:
        weather = await provider.get_current(city)
    except LocationNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No weather information found for '{city}'",
        )
    except AuthenticationError as e:
        logger.error(f"Weather provider rejected credentials: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Weather service not configured",
        )
    except ProviderError as e:
        logger.error(f"Weather lookup for '{city}' failed: {e} (status {e.status_code})")
        if e.status_code and 400 <= e.status_code < 600:
            raise HTTPException(status_code=e.status_code, detail=e.message)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch weather",
        )

    logger.info(f"Fetched weather for '{city}': {weather.temperature}°C {weather.condition}")
    return weather

"""WeatherAPI.com current-conditions provider.

## API Documentation Summary
Source: https://www.weatherapi.com/docs/

## Endpoint
- Base URL: https://api.weatherapi.com/v1
- Current weather: /current.json?key=KEY&q=CITY&aqi=no

## Authentication
- API key in the ``key`` query parameter
- Missing or invalid key: 401/403 with error codes 1002/2006/2008

## Response Format
```json
{
  "location": {"name": "Tokyo", "country": "Japan", ...},
  "current": {
    "temp_c": 18.3,
    "condition": {"text": "Partly cloudy", "icon": "//cdn...", "code": 1003},
    ...
  }
}
```

## Error Format
```json
{"error": {"code": 1006, "message": "No matching location found."}}
```

## Chinese City Names
WeatherAPI does not resolve names written in Chinese characters, so those
are converted to toneless pinyin and joined without spaces ("无锡" ->
"wuxi") before querying.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

import httpx
from pypinyin import Style, lazy_pinyin

from city_journal.models.weather import CurrentWeather
from city_journal.providers.base import (
    AuthenticationError,
    LocationNotFound,
    ProviderError,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

CJK_PATTERN = re.compile(r"[一-龥]")

# WeatherAPI error codes
ERROR_NO_LOCATION = 1006
AUTH_ERROR_CODES = {1002, 2006, 2007, 2008}

UNKNOWN_CONDITION = "Unknown"


def contains_chinese(text: str) -> bool:
    return bool(CJK_PATTERN.search(text))


def to_pinyin(text: str) -> str:
    """Convert a Chinese place name to joined, toneless pinyin."""
    return "".join(lazy_pinyin(text, style=Style.NORMAL))


def query_for_city(city: str) -> str:
    """Build the ``q`` parameter for a city name."""
    city = city.strip()
    if contains_chinese(city):
        query = to_pinyin(city)
        logger.debug(f"Converted Chinese city '{city}' to pinyin '{query}'")
        return query
    return city


def _error_payload(body: str | None) -> dict[str, Any]:
    if not body:
        return {}
    try:
        data = json.loads(body)
    except ValueError:
        return {}
    error = data.get("error") if isinstance(data, dict) else None
    return error if isinstance(error, dict) else {}


class WeatherAPIProvider(WeatherProvider):
    """WeatherAPI.com provider for current conditions.

    Example:
        ```python
        async with WeatherAPIProvider(api_key="...") as provider:
            weather = await provider.get_current("Tokyo")
        ```
    """

    name = "weatherapi"
    base_url = "https://api.weatherapi.com/v1"
    requires_api_key = True

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(api_key=api_key, timeout=timeout, transport=transport)
        if base_url:
            self.base_url = base_url.rstrip("/")

    async def get_current(self, city: str) -> CurrentWeather:
        """Get current weather for a city.

        Raises:
            AuthenticationError: If no API key is configured or it is rejected
            LocationNotFound: If WeatherAPI does not know the city
            ProviderError: For any other failure
        """
        if not self.api_key:
            raise AuthenticationError(
                "API key required for WeatherAPI.com",
                provider=self.name,
            )

        query = query_for_city(city)
        params = {"key": self.api_key, "q": query, "aqi": "no"}

        try:
            response = await self._fetch(f"{self.base_url}/current.json", params=params)
        except ProviderError as e:
            raise self._classify_error(e, city) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Request failed: {e.__class__.__name__}",
                provider=self.name,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Failed to parse response: {e}",
                provider=self.name,
                response_body=response.text,
            )

        return self._translate_response(data, city)

    def _classify_error(self, error: ProviderError, city: str) -> ProviderError:
        """Map WeatherAPI error codes onto the provider error hierarchy."""
        payload = _error_payload(error.response_body)
        code = payload.get("code")

        if code == ERROR_NO_LOCATION:
            logger.info(f"WeatherAPI has no location matching '{city}'")
            return LocationNotFound(self.name, city)
        if code in AUTH_ERROR_CODES or error.status_code in (401, 403):
            return AuthenticationError(
                payload.get("message", "Invalid API key"),
                provider=self.name,
                status_code=error.status_code,
            )
        if payload.get("message"):
            return ProviderError(
                payload["message"],
                provider=self.name,
                status_code=error.status_code,
                response_body=error.response_body,
            )
        return error

    def _translate_response(
        self,
        response_data: dict[str, Any],
        city: str,
    ) -> CurrentWeather:
        """Translate a ``current.json`` response.

        Raises:
            ProviderError: If the ``current`` block is missing
        """
        current = response_data.get("current") if isinstance(response_data, dict) else None
        if not isinstance(current, dict) or not isinstance(current.get("condition"), dict):
            logger.error(f"WeatherAPI response for '{city}' has no current data")
            raise ProviderError(
                "Malformed weather response",
                provider=self.name,
            )

        temp_c = current.get("temp_c")
        if not isinstance(temp_c, (int, float)):
            raise ProviderError(
                "Malformed weather response",
                provider=self.name,
            )

        condition = current["condition"].get("text") or UNKNOWN_CONDITION
        return CurrentWeather(
            temperature=math.floor(temp_c + 0.5),
            condition=condition,
            icon=condition,
        )

"""Base weather provider abstraction.

This module defines the interface for current-weather providers. Every
provider translates its API response into ``CurrentWeather``
(``city_journal.models.weather``), so the API layer never sees
provider-specific payloads.

### Canonical Units
- Temperature: Celsius (°C), rounded half up to an integer

## Supported Providers

### WeatherAPI.com (weatherapi.com)
- Endpoint: https://api.weatherapi.com/v1/current.json
- Auth: API key as ``key`` query parameter
- Rate limit: Varies by plan (free tier available)
- Key response path: current.temp_c, current.condition.text
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from city_journal.models.weather import CurrentWeather


class ProviderError(Exception):
    """Base exception for weather provider errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(ProviderError):
    """Raised when provider rate limit is exceeded."""

    def __init__(
        self,
        provider: str,
        retry_after: int | None = None,
        status_code: int | None = None,
    ):
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            status_code=status_code,
        )
        self.retry_after = retry_after


class AuthenticationError(ProviderError):
    """Raised when the API key is missing or rejected."""

    pass


class LocationNotFound(ProviderError):
    """Raised when the provider does not recognise the requested place."""

    def __init__(self, provider: str, location: str):
        super().__init__(
            f"No matching location found for '{location}'",
            provider=provider,
            status_code=404,
        )
        self.location = location


class WeatherProvider(ABC):
    """Abstract base class for current-weather providers.

    Attributes:
        name: Human-readable provider name
        base_url: Base URL for the API
        requires_api_key: Whether this provider requires an API key

    Example:
        ```python
        class MyProvider(WeatherProvider):
            name = "my_provider"
            base_url = "https://api.example.com"

            async def get_current(self, city):
                response = await self._fetch(...)
                return self._translate_response(response.json(), city)
        ```
    """

    name: str
    base_url: str
    requires_api_key: bool = False

    def __init__(
        self,
        api_key: str | None = None,
        user_agent: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: API key if required by the provider
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used by tests)
        """
        self.api_key = api_key
        self.user_agent = user_agent or "city-journal/0.1.0"
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> WeatherProvider:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            )
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Fetch data from the API with retry logic.

        Timeouts and network errors are retried; HTTP error statuses are not.

        Raises:
            ProviderError: If the API answers with an error status
            RateLimitError: If rate limit is exceeded
        """
        client = self._get_client()
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        response = await client.get(url, params=params, headers=request_headers)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.name,
                retry_after=int(retry_after) if retry_after else None,
                status_code=429,
            )

        if response.status_code >= 400:
            raise ProviderError(
                f"API request failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    @abstractmethod
    async def get_current(self, city: str) -> CurrentWeather:
        """Get current weather for a city name.

        Raises:
            LocationNotFound: If the provider does not know the city
            ProviderError: If weather cannot be retrieved
        """
        pass

    @abstractmethod
    def _translate_response(
        self,
        response_data: dict[str, Any],
        city: str,
    ) -> CurrentWeather:
        """Translate provider-specific response to ``CurrentWeather``."""
        pass

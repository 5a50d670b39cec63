"""Base HTTP provider abstraction.

Forecast and geocoding services are treated as unreliable, best-effort
sources. Providers translate each API response into our canonical models
(`DailyForecast`, `LocationInfo`) and their public methods never raise:
empty or partial responses degrade to an empty list or a placeholder name.

## Supported Providers

### Open-Meteo (open-meteo.com)
- Forecast: https://api.open-meteo.com/v1/forecast
- Geocoding: https://geocoding-api.open-meteo.com/v1/search
- Auth: None required for basic use
- Rate limit: 10,000 requests/day (non-commercial)

### Nominatim (nominatim.openstreetmap.org)
- Reverse geocoding: https://nominatim.openstreetmap.org/reverse
- Auth: None, but a User-Agent identifying the application is required
- Rate limit: 1 request/second
"""

from __future__ import annotations

from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
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


class HttpProvider:
    """Shared HTTP plumbing for external providers.

    Attributes:
        name: Provider name used in logs and errors
    """

    name: str

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        Args:
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests, connection sharing)
        """
        self.user_agent = user_agent or "sport-weather/0.1.0"
        self.timeout = timeout
        self._client = client

    async def __aenter__(self) -> HttpProvider:
        """Enter async context manager."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
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
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    async def _fetch_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Fetch and decode a JSON document with retry logic.

        Raises:
            ProviderError: If the request fails or the body is not JSON
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
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                status_code=429,
            )

        if response.status_code >= 400:
            raise ProviderError(
                f"API request failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"Failed to parse response: {e}",
                provider=self.name,
                response_body=response.text,
            ) from e

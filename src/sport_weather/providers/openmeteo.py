"""Open-Meteo forecast and geocoding provider.

## Forecast request

```
GET https://api.open-meteo.com/v1/forecast
    ?latitude=40.41&longitude=-3.70
    &daily=temperature_2m_max,precipitation_sum,windspeed_10m_max,weathercode
    &timezone=auto
```

## Forecast response

```json
{
  "daily": {
    "time": ["2024-06-15", "2024-06-16"],
    "temperature_2m_max": [28.1, 30.4],
    "precipitation_sum": [0.0, 1.2],
    "windspeed_10m_max": [12.3, 20.1],
    "weathercode": [1, 61]
  }
}
```

## Variable Translation (Open-Meteo -> Canonical)

| Open-Meteo Field | Canonical Field | Unit |
|------------------|-----------------|------|
| time | date | ISO date |
| temperature_2m_max | max_temp_c | °C |
| precipitation_sum | precipitation_sum_mm | mm |
| windspeed_10m_max | max_wind_speed_kmh | km/h |
| weathercode | weather_code | WMO code |

## Geocoding response

```json
{"results": [{"name": "Madrid", "latitude": 40.4165, "longitude": -3.70256, "country": "Spain"}]}
```
A query without matches has no `results` key.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from sport_weather.models.location import Coordinates, LocationInfo
from sport_weather.models.weather import DailyForecast
from sport_weather.providers.base import HttpProvider, ProviderError

logger = logging.getLogger(__name__)

DAILY_VARIABLES = "temperature_2m_max,precipitation_sum,windspeed_10m_max,weathercode"

MIN_QUERY_LENGTH = 2
MAX_SEARCH_RESULTS = 5


def _value_at(values: list[Any] | None, index: int, default: Any = None) -> Any:
    if not values or index >= len(values) or values[index] is None:
        return default
    return values[index]


class OpenMeteoProvider(HttpProvider):
    """Open-Meteo daily forecast and place search.

    Example:
        ```python
        async with OpenMeteoProvider() as provider:
            days = await provider.get_daily_forecast(
                Coordinates(latitude=40.4168, longitude=-3.7038)
            )
            places = await provider.search_locations("Madrid")
        ```
    """

    name = "open-meteo"

    def __init__(
        self,
        base_url: str = "https://api.open-meteo.com/v1",
        geocoding_url: str = "https://geocoding-api.open-meteo.com/v1",
        language: str = "en",
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(user_agent=user_agent, timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")
        self.geocoding_url = geocoding_url.rstrip("/")
        self.language = language

    async def get_daily_forecast(self, coordinates: Coordinates) -> list[DailyForecast]:
        """Get the daily forecast for a location.

        Returns:
            Days in chronological order, the first one flagged `is_today`.
            An empty list if the provider fails.
        """
        params = {
            "latitude": coordinates.latitude,
            "longitude": coordinates.longitude,
            "daily": DAILY_VARIABLES,
            "timezone": "auto",
        }
        try:
            data = await self._fetch_json(f"{self.base_url}/forecast", params=params)
            return self._translate_forecast(data)
        except (ProviderError, httpx.HTTPError, ValueError, TypeError) as e:
            logger.warning(f"Forecast unavailable for {coordinates}: {e}")
            return []

    def _translate_forecast(self, response_data: dict[str, Any]) -> list[DailyForecast]:
        """Translate an Open-Meteo daily response to canonical format.

        Days with an unparseable date or no temperature are skipped.
        """
        daily = response_data.get("daily") if isinstance(response_data, dict) else None
        if not daily:
            return []

        days: list[DailyForecast] = []
        for index, day_str in enumerate(daily.get("time", [])):
            try:
                day = date.fromisoformat(day_str)
            except (TypeError, ValueError):
                continue

            max_temp = _value_at(daily.get("temperature_2m_max"), index)
            if max_temp is None:
                continue

            days.append(
                DailyForecast(
                    date=day,
                    max_temp_c=max_temp,
                    precipitation_sum_mm=_value_at(daily.get("precipitation_sum"), index, 0.0),
                    max_wind_speed_kmh=_value_at(daily.get("windspeed_10m_max"), index, 0.0),
                    weather_code=_value_at(daily.get("weathercode"), index),
                    is_today=index == 0,
                )
            )

        return days

    async def search_locations(self, query: str) -> list[LocationInfo]:
        """Search places by free-text name.

        Returns:
            Up to five candidates ranked by the provider, or an empty list
            for short queries and provider failures.
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        params = {
            "name": query,
            "count": MAX_SEARCH_RESULTS,
            "language": self.language,
            "format": "json",
        }
        try:
            data = await self._fetch_json(f"{self.geocoding_url}/search", params=params)
        except (ProviderError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Location search failed for '{query}': {e}")
            return []

        results = data.get("results") if isinstance(data, dict) else None
        locations: list[LocationInfo] = []
        for result in results or []:
            try:
                locations.append(
                    LocationInfo(
                        name=result["name"],
                        latitude=result["latitude"],
                        longitude=result["longitude"],
                        country=result.get("country"),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue

        return locations

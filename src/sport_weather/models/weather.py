"""Weather data models.

Daily forecasts use the units returned by Open-Meteo's daily endpoint:

| Field | Unit |
|-------|------|
| max_temp_c | °C |
| precipitation_sum_mm | mm |
| max_wind_speed_kmh | km/h |
| weather_code | WMO weather interpretation code |
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


# WMO weather interpretation codes
WEATHER_CODE_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
}

UNKNOWN_WEATHER_DESCRIPTION = "Variable weather"


def describe_weather_code(code: int | None) -> str:
    """Human-readable description of a WMO weather code."""
    if code is None:
        return UNKNOWN_WEATHER_DESCRIPTION
    return WEATHER_CODE_DESCRIPTIONS.get(code, UNKNOWN_WEATHER_DESCRIPTION)


class DailyForecast(BaseModel):
    """Forecast summary for a single day."""

    date: date
    max_temp_c: float
    precipitation_sum_mm: float = Field(default=0.0, ge=0)
    max_wind_speed_kmh: float = Field(default=0.0, ge=0)
    weather_code: int | None = None
    is_today: bool = False

    @property
    def description(self) -> str:
        return describe_weather_code(self.weather_code)

"""Forecast and geocoding providers."""

from sport_weather.providers.base import HttpProvider, ProviderError, RateLimitError
from sport_weather.providers.nominatim import NominatimGeocoder
from sport_weather.providers.openmeteo import OpenMeteoProvider

__all__ = [
    "HttpProvider",
    "ProviderError",
    "RateLimitError",
    "NominatimGeocoder",
    "OpenMeteoProvider",
]

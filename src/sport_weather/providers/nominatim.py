"""Nominatim reverse geocoding.

Turns the user's detected coordinates into a place name for display.

```
GET https://nominatim.openstreetmap.org/reverse?format=json&lat=40.41&lon=-3.70&zoom=10
```

The most specific of `address.city`, `town`, `village` and `state` is used.
"""

from __future__ import annotations

import logging

import httpx

from sport_weather.models.location import CURRENT_LOCATION_PLACEHOLDER, Coordinates
from sport_weather.providers.base import HttpProvider, ProviderError

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("city", "town", "village", "state")


class NominatimGeocoder(HttpProvider):
    """Reverse geocoder backed by OpenStreetMap Nominatim."""

    name = "nominatim"

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        language: str = "en",
        user_agent: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(user_agent=user_agent, timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")
        self.language = language

    async def reverse_geocode(self, coordinates: Coordinates) -> str:
        """Get a human-readable place name for coordinates.

        Returns:
            The place name, or a generic placeholder if none can be found
        """
        params = {
            "format": "json",
            "lat": coordinates.latitude,
            "lon": coordinates.longitude,
            "zoom": 10,
        }
        try:
            data = await self._fetch_json(
                f"{self.base_url}/reverse",
                params=params,
                headers={"Accept-Language": self.language},
            )
        except (ProviderError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for {coordinates}: {e}")
            return CURRENT_LOCATION_PLACEHOLDER

        address = data.get("address") if isinstance(data, dict) else None
        if not isinstance(address, dict):
            return CURRENT_LOCATION_PLACEHOLDER

        for field in ADDRESS_FIELDS:
            if address.get(field):
                return address[field]
        return CURRENT_LOCATION_PLACEHOLDER

"""City search routes.

Search only geocodes names; it does not fetch forecasts, so it is not
metered by the city quota.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from sport_weather.api.dependencies import get_forecast_provider
from sport_weather.providers.openmeteo import OpenMeteoProvider

router = APIRouter()


class LocationResponse(BaseModel):
    """A geocoded place."""

    name: str
    display_name: str
    latitude: float
    longitude: float
    country: str | None


@router.get("/search", response_model=list[LocationResponse])
async def search_locations(
    q: str = Query(..., max_length=100, description="City name"),
    provider: OpenMeteoProvider = Depends(get_forecast_provider),
) -> list[LocationResponse]:
    """Search cities by name."""
    results = await provider.search_locations(q)
    return [
        LocationResponse(
            name=location.name,
            display_name=location.display_name(),
            latitude=location.latitude,
            longitude=location.longitude,
            country=location.country,
        )
        for location in results
    ]

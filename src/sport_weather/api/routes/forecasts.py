"""Forecast routes.

A forecast request for a searched city is metered by the city quota:

1. The city access policy decides; a denial answers 429 with the decision.
2. The forecast is fetched.
3. The city is recorded only once the forecast arrived.

Requests for the user's detected location skip the quota entirely.

Known limitation: the metered label is the client-supplied `name` and the
`is_current_location` flag is taken as sent. Neither is reconciled with
`latitude`/`longitude`, so a dishonest client can relabel a city or claim
any coordinates as its current location to avoid the quota.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator

from sport_weather.api.dependencies import (
    get_city_policy,
    get_forecast_provider,
    get_reverse_geocoder,
)
from sport_weather.auth.dependencies import get_current_session, get_user_profile
from sport_weather.auth.session import SessionData
from sport_weather.auth.validation import validate_sports
from sport_weather.database.models import User
from sport_weather.models.location import CURRENT_LOCATION_PLACEHOLDER, Coordinates
from sport_weather.models.recommendation import SportRecommendation
from sport_weather.models.sport import SPORTS, ToleranceLevel
from sport_weather.policies.city_access import CityAccessDecision, CityAccessPolicy
from sport_weather.providers.nominatim import NominatimGeocoder
from sport_weather.providers.openmeteo import OpenMeteoProvider
from sport_weather.recommendations.evaluator import recommend_sports

logger = logging.getLogger(__name__)

router = APIRouter()


class ForecastRequest(BaseModel):
    """Forecast request for a named place."""

    name: str = Field(default="", max_length=200)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    is_current_location: bool = False

    # Overrides for the stored profile
    sports: list[str] | None = None
    tolerance: ToleranceLevel | None = None

    @field_validator("sports")
    @classmethod
    def check_sports(cls, v: list[str] | None) -> list[str] | None:
        return validate_sports(v) if v is not None else None


class AccessDecisionResponse(BaseModel):
    """City quota decision."""

    allowed: bool
    remaining: int
    capacity: int
    reset_at: datetime | None
    already_counted: bool
    is_current_location: bool
    message: str | None

    @classmethod
    def from_decision(cls, decision: CityAccessDecision) -> AccessDecisionResponse:
        return cls(
            allowed=decision.allowed,
            remaining=decision.remaining,
            capacity=decision.capacity,
            reset_at=decision.reset_at,
            already_counted=decision.already_counted,
            is_current_location=decision.is_current_location,
            message=decision.message,
        )


class ForecastDayResponse(BaseModel):
    """Forecast for one day."""

    date: date
    max_temp_c: float
    precipitation_sum_mm: float
    max_wind_speed_kmh: float
    weather_code: int | None
    description: str
    is_today: bool


class ForecastResponse(BaseModel):
    """Forecast with per-sport recommendations."""

    location: str
    latitude: float
    longitude: float
    tolerance: ToleranceLevel
    days: list[ForecastDayResponse]
    recommendations: list[SportRecommendation]
    access: AccessDecisionResponse


class PlaceNameResponse(BaseModel):
    name: str


class LimitInfoResponse(BaseModel):
    message: str


def _resolve_preferences(
    data: ForecastRequest, profile: User | None
) -> tuple[list[str], ToleranceLevel]:
    sports = data.sports
    if sports is None and profile is not None and profile.sports:
        sports = list(profile.sports)
    if not sports:
        sports = [sport.id for sport in SPORTS]

    tolerance = data.tolerance
    if tolerance is None and profile is not None:
        tolerance = ToleranceLevel(profile.tolerance)
    return sports, tolerance or ToleranceLevel.MODERATE


@router.post("", response_model=ForecastResponse)
async def get_forecast(
    data: ForecastRequest,
    session: SessionData = Depends(get_current_session),
    profile: User | None = Depends(get_user_profile),
    policy: CityAccessPolicy = Depends(get_city_policy),
    provider: OpenMeteoProvider = Depends(get_forecast_provider),
) -> ForecastResponse:
    """Fetch a forecast and rate each of the user's sports for it."""
    name = data.name.strip()
    if data.is_current_location and not name:
        name = CURRENT_LOCATION_PLACEHOLDER

    decision = await policy.can_access_city(
        session.subject_id,
        session.email,
        name,
        is_current_location=data.is_current_location,
    )
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=AccessDecisionResponse.from_decision(decision).model_dump(mode="json"),
        )

    coordinates = Coordinates(latitude=data.latitude, longitude=data.longitude)
    forecast = await provider.get_daily_forecast(coordinates)
    if not forecast:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Forecast is temporarily unavailable",
        )

    await policy.record_city_access(
        session.subject_id,
        session.email,
        name,
        data.latitude,
        data.longitude,
        is_current_location=data.is_current_location,
    )

    sports, tolerance = _resolve_preferences(data, profile)

    return ForecastResponse(
        location=name,
        latitude=data.latitude,
        longitude=data.longitude,
        tolerance=tolerance,
        days=[
            ForecastDayResponse(
                date=day.date,
                max_temp_c=day.max_temp_c,
                precipitation_sum_mm=day.precipitation_sum_mm,
                max_wind_speed_kmh=day.max_wind_speed_kmh,
                weather_code=day.weather_code,
                description=day.description,
                is_today=day.is_today,
            )
            for day in forecast
        ],
        recommendations=recommend_sports(sports, forecast, tolerance),
        access=AccessDecisionResponse.from_decision(decision),
    )


@router.get("/reverse", response_model=PlaceNameResponse)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    session: SessionData = Depends(get_current_session),
    geocoder: NominatimGeocoder = Depends(get_reverse_geocoder),
) -> PlaceNameResponse:
    """Name the user's detected location."""
    name = await geocoder.reverse_geocode(Coordinates(latitude=lat, longitude=lon))
    return PlaceNameResponse(name=name)


@router.get("/limits", response_model=LimitInfoResponse)
async def get_city_limits(
    session: SessionData = Depends(get_current_session),
    policy: CityAccessPolicy = Depends(get_city_policy),
) -> LimitInfoResponse:
    """Describe the user's remaining city quota."""
    message = await policy.get_limit_info(session.subject_id, session.email)
    return LimitInfoResponse(message=message)

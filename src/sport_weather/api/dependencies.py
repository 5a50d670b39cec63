"""FastAPI dependencies for the services created at startup.

The lifespan handler stores policies and providers on `app.state`; these
accessors let routes depend on them and let tests swap them out.
"""

from __future__ import annotations

from fastapi import Request

from sport_weather.policies.city_access import CityAccessPolicy
from sport_weather.policies.support_messages import SupportMessagePolicy
from sport_weather.providers.nominatim import NominatimGeocoder
from sport_weather.providers.openmeteo import OpenMeteoProvider
from sport_weather.support.service import SupportService


def get_city_policy(request: Request) -> CityAccessPolicy:
    return request.app.state.city_policy


def get_support_policy(request: Request) -> SupportMessagePolicy:
    return request.app.state.support_policy


def get_support_service(request: Request) -> SupportService:
    return request.app.state.support_service


def get_forecast_provider(request: Request) -> OpenMeteoProvider:
    return request.app.state.forecast_provider


def get_reverse_geocoder(request: Request) -> NominatimGeocoder:
    return request.app.state.reverse_geocoder

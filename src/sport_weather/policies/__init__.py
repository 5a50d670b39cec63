"""Quota policies for city lookups and support messages."""

from sport_weather.policies.city_access import CityAccessDecision, CityAccessPolicy
from sport_weather.policies.factory import build_city_policy, build_support_policy
from sport_weather.policies.support_messages import SupportMessagePolicy

__all__ = [
    "CityAccessDecision",
    "CityAccessPolicy",
    "SupportMessagePolicy",
    "build_city_policy",
    "build_support_policy",
]

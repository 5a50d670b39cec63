"""Domain models for sport weather recommendations."""

from sport_weather.models.location import Coordinates, LocationInfo
from sport_weather.models.weather import DailyForecast, describe_weather_code
from sport_weather.models.sport import (
    SPORTS,
    Sport,
    SportThresholds,
    ToleranceLevel,
    get_sport,
)
from sport_weather.models.recommendation import (
    DayRecommendation,
    RecommendationStatus,
    SportRecommendation,
)

__all__ = [
    # Location
    "Coordinates",
    "LocationInfo",
    # Weather
    "DailyForecast",
    "describe_weather_code",
    # Sport
    "SPORTS",
    "Sport",
    "SportThresholds",
    "ToleranceLevel",
    "get_sport",
    # Recommendation
    "DayRecommendation",
    "RecommendationStatus",
    "SportRecommendation",
]

"""Recommendation systems for weather-based sport planning."""

from sport_weather.recommendations.evaluator import (
    evaluate_sport,
    recommend_sport,
    recommend_sports,
)

__all__ = [
    "evaluate_sport",
    "recommend_sport",
    "recommend_sports",
]

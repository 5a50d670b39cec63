"""Sport recommendation evaluation.

A day is rated per sport against the thresholds of the user's tolerance:

- 🟢 Optimal: temperature within [min, max], wind <= max, rain <= max
- 🟡 Moderate: temperature within [min - 5, max + 5], wind <= 1.5 x max,
  rain <= 2 x max + 2
- 🔴 Limited: anything worse
"""

from __future__ import annotations

import logging

from sport_weather.models.recommendation import (
    DayRecommendation,
    RecommendationStatus,
    SportRecommendation,
)
from sport_weather.models.sport import Sport, ToleranceLevel, get_sport
from sport_weather.models.weather import DailyForecast

logger = logging.getLogger(__name__)

# Slack allowed for a "moderate" verdict
TEMP_MARGIN_C = 5.0
WIND_FACTOR = 1.5
RAIN_FACTOR = 2.0
RAIN_MARGIN_MM = 2.0


def evaluate_sport(
    sport: Sport,
    day: DailyForecast,
    tolerance: ToleranceLevel,
) -> RecommendationStatus:
    """Rate a day's weather for a sport."""
    t = sport.thresholds_for(tolerance)

    temp_ok = t.min_temp_c <= day.max_temp_c <= t.max_temp_c
    wind_ok = day.max_wind_speed_kmh <= t.max_wind_kmh
    rain_ok = day.precipitation_sum_mm <= t.max_rain_mm

    if temp_ok and wind_ok and rain_ok:
        return RecommendationStatus.OPTIMAL

    temp_fair = (
        t.min_temp_c - TEMP_MARGIN_C <= day.max_temp_c <= t.max_temp_c + TEMP_MARGIN_C
    )
    wind_fair = day.max_wind_speed_kmh <= t.max_wind_kmh * WIND_FACTOR
    rain_fair = day.precipitation_sum_mm <= t.max_rain_mm * RAIN_FACTOR + RAIN_MARGIN_MM

    if temp_fair and wind_fair and rain_fair:
        return RecommendationStatus.MODERATE

    return RecommendationStatus.LIMITED


def recommend_sport(
    sport: Sport,
    forecast: list[DailyForecast],
    tolerance: ToleranceLevel,
) -> SportRecommendation:
    """Build the daily and weekly verdicts for one sport."""
    week = []
    for day in forecast:
        status = evaluate_sport(sport, day, tolerance)
        week.append(
            DayRecommendation(
                date=day.date,
                status=status,
                label=status.label,
                weather_description=day.description,
            )
        )

    today = next(
        (rec for rec, day in zip(week, forecast) if day.is_today),
        week[0] if week else None,
    )

    return SportRecommendation(
        sport_id=sport.id,
        sport_name=sport.name,
        icon=sport.icon,
        today=today,
        week=week,
    )


def recommend_sports(
    sport_ids: list[str],
    forecast: list[DailyForecast],
    tolerance: ToleranceLevel,
) -> list[SportRecommendation]:
    """Build recommendations for each of the user's sports.

    Unknown sport ids are skipped.
    """
    recommendations = []
    for sport_id in sport_ids:
        sport = get_sport(sport_id)
        if sport is None:
            logger.debug(f"Skipping unknown sport: {sport_id}")
            continue
        recommendations.append(recommend_sport(sport, forecast, tolerance))
    return recommendations

"""Tests for the recommendations module."""

from datetime import date

import pytest

from sport_weather.models.recommendation import RecommendationStatus
from sport_weather.models.sport import SPORTS, ToleranceLevel, get_sport
from sport_weather.models.weather import DailyForecast
from sport_weather.recommendations.evaluator import (
    evaluate_sport,
    recommend_sport,
    recommend_sports,
)


def day(temp: float, rain: float = 0.0, wind: float = 5.0, code: int | None = 0) -> DailyForecast:
    return DailyForecast(
        date=date(2024, 6, 1),
        max_temp_c=temp,
        precipitation_sum_mm=rain,
        max_wind_speed_kmh=wind,
        weather_code=code,
    )


class TestSportCatalog:
    """Tests for the built-in sports."""

    def test_ten_sports(self):
        assert len(SPORTS) == 10
        assert len({sport.id for sport in SPORTS}) == 10

    def test_every_sport_covers_all_tolerances(self):
        for sport in SPORTS:
            for tolerance in ToleranceLevel:
                thresholds = sport.thresholds_for(tolerance)
                assert thresholds.min_temp_c < thresholds.max_temp_c

    def test_higher_tolerance_is_never_stricter(self):
        for sport in SPORTS:
            low = sport.thresholds_for(ToleranceLevel.LOW)
            high = sport.thresholds_for(ToleranceLevel.HIGH)
            assert high.min_temp_c <= low.min_temp_c
            assert high.max_wind_kmh >= low.max_wind_kmh
            assert high.max_rain_mm >= low.max_rain_mm

    def test_lookup(self):
        assert get_sport("running").name == "Running"
        assert get_sport("curling") is None


class TestEvaluateSport:
    """Tests for the traffic-light evaluation (running, moderate: 5-28°C, 20 km/h, 1 mm)."""

    @pytest.fixture
    def running(self):
        return get_sport("running")

    def test_optimal(self, running):
        status = evaluate_sport(running, day(20), ToleranceLevel.MODERATE)
        assert status == RecommendationStatus.OPTIMAL
        assert status.value == "🟢"
        assert status.label == "Optimal"

    def test_temperature_within_margin_is_moderate(self, running):
        assert evaluate_sport(running, day(31), ToleranceLevel.MODERATE) == (
            RecommendationStatus.MODERATE
        )
        assert evaluate_sport(running, day(0), ToleranceLevel.MODERATE) == (
            RecommendationStatus.MODERATE
        )

    def test_wind_and_rain_within_margin_are_moderate(self, running):
        status = evaluate_sport(running, day(20, rain=4, wind=30), ToleranceLevel.MODERATE)
        assert status == RecommendationStatus.MODERATE
        assert status.label == "Moderate"

    def test_beyond_margins_is_limited(self, running):
        assert evaluate_sport(running, day(34), ToleranceLevel.MODERATE) == (
            RecommendationStatus.LIMITED
        )
        assert evaluate_sport(running, day(20, wind=31), ToleranceLevel.MODERATE) == (
            RecommendationStatus.LIMITED
        )
        status = evaluate_sport(running, day(20, rain=4.5), ToleranceLevel.MODERATE)
        assert status == RecommendationStatus.LIMITED
        assert status.label == "Limited"

    def test_tolerance_changes_verdict(self, running):
        cold = day(0)
        assert evaluate_sport(running, cold, ToleranceLevel.LOW) == RecommendationStatus.LIMITED
        assert evaluate_sport(running, cold, ToleranceLevel.HIGH) == RecommendationStatus.OPTIMAL


class TestRecommendSports:
    """Tests for daily and weekly recommendations."""

    def test_week_covers_every_day(self, sample_forecast):
        recommendation = recommend_sport(
            get_sport("running"), sample_forecast, ToleranceLevel.MODERATE
        )

        assert len(recommendation.week) == 7
        assert recommendation.today == recommendation.week[0]
        assert recommendation.today.status == RecommendationStatus.OPTIMAL
        assert recommendation.week[-1].status == RecommendationStatus.LIMITED
        assert recommendation.week[-1].weather_description == "Thunderstorm"

    def test_empty_forecast(self):
        recommendation = recommend_sport(get_sport("tennis"), [], ToleranceLevel.LOW)

        assert recommendation.today is None
        assert recommendation.week == []

    def test_unknown_sports_skipped(self, sample_forecast):
        recommendations = recommend_sports(
            ["running", "curling", "tennis"], sample_forecast, ToleranceLevel.HIGH
        )

        assert [r.sport_id for r in recommendations] == ["running", "tennis"]

"""Tests for location and weather models."""

from datetime import date

import pytest

from sport_weather.models.location import Coordinates, LocationInfo
from sport_weather.models.weather import DailyForecast, describe_weather_code


class TestCoordinates:
    """Tests for the Coordinates model."""

    def test_boundary_values(self):
        """Test boundary latitude/longitude values."""
        assert Coordinates(latitude=90, longitude=180).latitude == 90
        assert Coordinates(latitude=-90, longitude=-180).longitude == -180

    def test_invalid_latitude(self):
        with pytest.raises(ValueError):
            Coordinates(latitude=91, longitude=0)

    def test_invalid_longitude(self):
        with pytest.raises(ValueError):
            Coordinates(latitude=0, longitude=-181)

    def test_str_representation(self):
        assert str(Coordinates(latitude=40.4168, longitude=-3.7038)) == "40.4168,-3.7038"


class TestLocationInfo:
    """Tests for geocoded places."""

    def test_display_name_with_country(self):
        place = LocationInfo(name="Madrid", latitude=40.4, longitude=-3.7, country="Spain")
        assert place.display_name() == "Madrid, Spain"

    def test_display_name_without_country(self):
        place = LocationInfo(name="Madrid", latitude=40.4, longitude=-3.7)
        assert place.display_name() == "Madrid"

    def test_coordinates(self):
        place = LocationInfo(name="Madrid", latitude=40.4, longitude=-3.7)
        assert place.coordinates == Coordinates(latitude=40.4, longitude=-3.7)


class TestDailyForecast:
    """Tests for daily forecast summaries."""

    def test_description_from_weather_code(self):
        forecast = DailyForecast(date=date(2024, 6, 1), max_temp_c=25, weather_code=61)
        assert forecast.description == "Slight rain"

    def test_unknown_code(self):
        assert describe_weather_code(42) == "Variable weather"
        assert describe_weather_code(None) == "Variable weather"

    def test_defaults(self):
        forecast = DailyForecast(date=date(2024, 6, 1), max_temp_c=25)
        assert forecast.precipitation_sum_mm == 0.0
        assert forecast.max_wind_speed_kmh == 0.0
        assert not forecast.is_today

    def test_negative_precipitation_rejected(self):
        with pytest.raises(ValueError):
            DailyForecast(date=date(2024, 6, 1), max_temp_c=25, precipitation_sum_mm=-1)

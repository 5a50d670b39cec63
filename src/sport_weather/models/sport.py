"""Sport models and the built-in sport catalog.

Each sport defines acceptable conditions for three tolerance levels. A
user with a `low` tolerance wants mild weather; `high` tolerance users are
fine training in the cold, wind or rain.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ToleranceLevel(str, Enum):
    """How much adverse weather a user accepts."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class SportThresholds(BaseModel):
    """Acceptable daily conditions for a sport at one tolerance level."""

    min_temp_c: float = Field(..., description="Minimum max-temperature in Celsius")
    max_temp_c: float = Field(..., description="Maximum max-temperature in Celsius")
    max_wind_kmh: float = Field(..., ge=0, description="Maximum wind speed in km/h")
    max_rain_mm: float = Field(..., ge=0, description="Maximum daily precipitation in mm")


class Sport(BaseModel):
    """An outdoor sport users can follow."""

    id: str
    name: str
    icon: str = ""
    thresholds: dict[ToleranceLevel, SportThresholds]

    def thresholds_for(self, tolerance: ToleranceLevel) -> SportThresholds:
        return self.thresholds[tolerance]


def _sport(
    id: str,
    name: str,
    icon: str,
    low: tuple[float, float, float, float],
    moderate: tuple[float, float, float, float],
    high: tuple[float, float, float, float],
) -> Sport:
    """Build a sport from (min_temp, max_temp, max_wind, max_rain) tuples."""

    def thresholds(values: tuple[float, float, float, float]) -> SportThresholds:
        min_temp, max_temp, max_wind, max_rain = values
        return SportThresholds(
            min_temp_c=min_temp,
            max_temp_c=max_temp,
            max_wind_kmh=max_wind,
            max_rain_mm=max_rain,
        )

    return Sport(
        id=id,
        name=name,
        icon=icon,
        thresholds={
            ToleranceLevel.LOW: thresholds(low),
            ToleranceLevel.MODERATE: thresholds(moderate),
            ToleranceLevel.HIGH: thresholds(high),
        },
    )


SPORTS: list[Sport] = [
    _sport("running", "Running", "🏃", (12, 22, 10, 0), (5, 28, 20, 1), (-5, 35, 40, 5)),
    _sport("cycling", "Road Cycling", "🚴", (15, 25, 10, 0), (10, 30, 25, 0), (0, 38, 45, 2)),
    _sport("tennis", "Tennis", "🎾", (15, 26, 5, 0), (10, 32, 15, 0), (5, 38, 30, 0)),
    _sport("calisthenics", "Calisthenics", "💪", (15, 25, 15, 0), (10, 30, 25, 1), (0, 38, 40, 5)),
    _sport("outdoor_yoga", "Outdoor Yoga", "🧘", (18, 24, 5, 0), (15, 28, 10, 0), (10, 32, 20, 1)),
    _sport("hiking", "Hiking", "🥾", (10, 22, 15, 0), (5, 28, 30, 2), (-10, 35, 60, 10)),
    _sport("swimming", "Open Water Swimming", "🏊", (20, 30, 10, 0), (16, 32, 25, 2), (12, 38, 40, 5)),
    _sport("skateboarding", "Skateboarding", "🛹", (15, 25, 10, 0), (10, 30, 20, 0), (5, 35, 35, 0)),
    _sport("football", "Football", "⚽", (10, 24, 15, 0), (5, 30, 30, 5), (-5, 35, 50, 15)),
    _sport("beach_volleyball", "Beach Volleyball", "🏐", (20, 28, 10, 0), (15, 32, 20, 0), (10, 38, 40, 2)),
]

SPORTS_BY_ID: dict[str, Sport] = {sport.id: sport for sport in SPORTS}


def get_sport(sport_id: str) -> Sport | None:
    """Look up a sport by id."""
    return SPORTS_BY_ID.get(sport_id)

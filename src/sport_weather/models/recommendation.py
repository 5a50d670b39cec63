"""Recommendation models."""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel


class RecommendationStatus(str, Enum):
    """Traffic-light verdict for a sport on a given day."""

    OPTIMAL = "🟢"
    MODERATE = "🟡"
    LIMITED = "🔴"

    @property
    def label(self) -> str:
        return {
            RecommendationStatus.OPTIMAL: "Optimal",
            RecommendationStatus.MODERATE: "Moderate",
            RecommendationStatus.LIMITED: "Limited",
        }[self]


class DayRecommendation(BaseModel):
    """Verdict for one sport on one day."""

    date: date
    status: RecommendationStatus
    label: str
    weather_description: str


class SportRecommendation(BaseModel):
    """Daily and weekly verdicts for one sport."""

    sport_id: str
    sport_name: str
    icon: str = ""
    today: DayRecommendation | None = None
    week: list[DayRecommendation] = []

"""Pytest fixtures for sport weather tests.

This module provides test fixtures that ensure:
1. No external API calls are made (forecast, geocoding, email providers)
2. No real database connections; SQL tests use in-memory SQLite
3. Quota windows are driven by a controllable clock
"""

import os
import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

# Set test environment BEFORE importing application modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.pop("DATABASE_URL", None)

from sport_weather.models.weather import DailyForecast
from sport_weather.quota.base import LedgerBackend, LedgerUnavailableError
from sport_weather.quota.ledger import QuotaLedger
from sport_weather.quota.memory import MemoryLedgerBackend


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> datetime:
        self.current += delta
        return self.current


class FailingLedgerBackend(LedgerBackend):
    """Backend whose every operation fails, like an unreachable database."""

    name = "failing"

    def __init__(self) -> None:
        self.calls = 0

    async def _fail(self):
        self.calls += 1
        raise LedgerUnavailableError("connection refused")

    async def purge_before(self, scope, cutoff):
        return await self._fail()

    async def find_records(self, scope, subject, since, resource_label=None):
        return await self._fail()

    async def insert_record(self, record):
        return await self._fail()

    async def touch_record(self, scope, record_id, seen_at):
        return await self._fail()


class BrokenLedgerBackend(MemoryLedgerBackend):
    """Backend that fails with an unexpected error, like a backend bug."""

    name = "broken"

    async def purge_before(self, scope, cutoff):
        raise RuntimeError("backend blew up")

    async def find_records(self, scope, subject, since, resource_label=None):
        raise RuntimeError("backend blew up")

    async def insert_record(self, record):
        raise RuntimeError("backend blew up")


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from sport_weather.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_backend() -> MemoryLedgerBackend:
    return MemoryLedgerBackend()


@pytest.fixture
def failing_backend() -> FailingLedgerBackend:
    return FailingLedgerBackend()


@pytest.fixture
def broken_backend() -> BrokenLedgerBackend:
    return BrokenLedgerBackend()


@pytest.fixture
def city_ledger(memory_backend: MemoryLedgerBackend, clock: FakeClock) -> QuotaLedger:
    """Ledger for the city scope over an in-memory store."""
    return QuotaLedger(memory_backend, scope="city", now_func=clock)


@pytest.fixture
def user_id() -> str:
    return str(uuid.UUID("00000000-0000-4000-8000-000000000001"))


@pytest.fixture
def sample_forecast() -> list[DailyForecast]:
    """A week of mild, dry weather followed by a stormy day."""
    start = date(2024, 6, 1)
    days = [
        DailyForecast(
            date=start + timedelta(days=i),
            max_temp_c=20.0,
            precipitation_sum_mm=0.0,
            max_wind_speed_kmh=8.0,
            weather_code=1,
            is_today=i == 0,
        )
        for i in range(6)
    ]
    days.append(
        DailyForecast(
            date=start + timedelta(days=6),
            max_temp_c=9.0,
            precipitation_sum_mm=25.0,
            max_wind_speed_kmh=60.0,
            weather_code=95,
        )
    )
    return days

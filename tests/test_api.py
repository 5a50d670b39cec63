"""Tests for the HTTP API.

The lifespan handler is not run; services are placed on `app.state` directly
so no external provider or database is contacted.
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sport_weather.api.app import configure_services, create_app
from sport_weather.auth.session import create_session_token
from sport_weather.database.connection import get_db_session
from sport_weather.database.models import Base
from sport_weather.models.location import LocationInfo
from sport_weather.policies.city_access import CityAccessPolicy
from sport_weather.policies.support_messages import SupportMessagePolicy
from sport_weather.quota.ledger import QuotaLedger
from sport_weather.quota.memory import MemoryLedgerBackend
from sport_weather.support.email import EmailDispatcher, EmailSendError
from sport_weather.support.service import SupportService

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
EMAIL = "runner@example.com"
CITIES = ["Madrid", "Paris", "Berlin", "Lisbon", "Vienna", "Prague", "Oslo"]


class StubDispatcher(EmailDispatcher):
    def __init__(self, configured: bool = True, error: Exception | None = None):
        self.configured = configured
        self.error = error
        self.sent = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def send(self, ticket) -> None:
        if self.error:
            raise self.error
        self.sent.append(ticket)


@pytest.fixture
def dispatcher() -> StubDispatcher:
    return StubDispatcher()


@pytest.fixture
def app(clock, sample_forecast, dispatcher):
    app = create_app()

    city_store = MemoryLedgerBackend()
    support_store = MemoryLedgerBackend()
    app.state.city_store = city_store
    app.state.city_policy = CityAccessPolicy(
        QuotaLedger(city_store, scope="city", now_func=clock)
    )
    app.state.support_policy = SupportMessagePolicy(
        QuotaLedger(support_store, scope="support", now_func=clock)
    )
    app.state.support_service = SupportService(app.state.support_policy, dispatcher)

    provider = AsyncMock()
    provider.get_daily_forecast.return_value = sample_forecast
    provider.search_locations.return_value = [
        LocationInfo(name="Madrid", latitude=40.4165, longitude=-3.70256, country="Spain")
    ]
    app.state.forecast_provider = provider

    geocoder = AsyncMock()
    geocoder.reverse_geocode.return_value = "Madrid"
    app.state.reverse_geocoder = geocoder

    return app


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(USER_ID, EMAIL)}"}


def forecast_body(name: str, **extra) -> dict:
    return {"name": name, "latitude": 40.4, "longitude": -3.7, **extra}


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestForecasts:
    """Tests for metered forecasts."""

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.post("/api/forecasts", json=forecast_body("Madrid"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_session_cookie_accepted(self, client):
        token = create_session_token(USER_ID, EMAIL)

        response = await client.get(
            "/api/forecasts/limits", headers={"Cookie": f"sport_weather_session={token}"}
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_forecast_with_recommendations(self, client, auth_headers):
        response = await client.post(
            "/api/forecasts", json=forecast_body("Madrid"), headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["location"] == "Madrid"
        assert len(data["days"]) == 7
        assert data["days"][0]["description"] == "Mainly clear"
        assert len(data["recommendations"]) == 10
        assert data["tolerance"] == "moderate"
        assert data["access"]["remaining"] == 6
        assert data["access"]["message"] == "You have 6 new cities left this week."

    @pytest.mark.asyncio
    async def test_sports_override(self, client, auth_headers):
        response = await client.post(
            "/api/forecasts",
            json=forecast_body("Madrid", sports=["running"], tolerance="high"),
            headers=auth_headers,
        )

        recommendations = response.json()["recommendations"]
        assert [r["sport_id"] for r in recommendations] == ["running"]
        assert recommendations[0]["today"]["status"] == "🟢"

    @pytest.mark.asyncio
    async def test_unknown_sport_rejected(self, client, auth_headers):
        response = await client.post(
            "/api/forecasts",
            json=forecast_body("Madrid", sports=["curling"]),
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_blank_city_rejected(self, client, auth_headers):
        response = await client.post(
            "/api/forecasts", json=forecast_body("  "), headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_eighth_city_denied(self, client, auth_headers, clock):
        for city in CITIES:
            response = await client.post(
                "/api/forecasts", json=forecast_body(city), headers=auth_headers
            )
            assert response.status_code == 200
            clock.advance(timedelta(hours=1))

        rome = await client.post("/api/forecasts", json=forecast_body("Rome"), headers=auth_headers)
        madrid = await client.post(
            "/api/forecasts", json=forecast_body("MADRID"), headers=auth_headers
        )

        assert rome.status_code == 429
        assert rome.json()["detail"]["allowed"] is False
        assert "limit of 7 cities" in rome.json()["detail"]["message"]
        assert madrid.status_code == 200
        assert madrid.json()["access"]["already_counted"] is True

    @pytest.mark.asyncio
    async def test_current_location_not_metered(self, client, auth_headers, app):
        response = await client.post(
            "/api/forecasts",
            json=forecast_body("", is_current_location=True),
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["location"] == "Your location"
        assert response.json()["access"]["is_current_location"] is True
        assert len(app.state.city_store) == 0

    @pytest.mark.asyncio
    async def test_failed_fetch_not_recorded(self, client, auth_headers, app):
        app.state.forecast_provider.get_daily_forecast.return_value = []

        response = await client.post(
            "/api/forecasts", json=forecast_body("Madrid"), headers=auth_headers
        )

        assert response.status_code == 502
        assert len(app.state.city_store) == 0

    @pytest.mark.asyncio
    async def test_limits(self, client, auth_headers):
        await client.post("/api/forecasts", json=forecast_body("Madrid"), headers=auth_headers)

        response = await client.get("/api/forecasts/limits", headers=auth_headers)

        assert response.json() == {"message": "You have 6 new cities available this week."}

    @pytest.mark.asyncio
    async def test_reverse_geocode(self, client, auth_headers):
        response = await client.get(
            "/api/forecasts/reverse", params={"lat": 40.4, "lon": -3.7}, headers=auth_headers
        )
        assert response.json() == {"name": "Madrid"}


class TestLocations:
    @pytest.mark.asyncio
    async def test_search(self, client):
        response = await client.get("/api/locations/search", params={"q": "Madrid"})

        assert response.status_code == 200
        assert response.json()[0]["display_name"] == "Madrid, Spain"


class TestSupport:
    """Tests for support messages."""

    def _ticket(self, email: str = "help-me@example.com") -> dict:
        return {
            "user_name": "Ana",
            "user_email": email,
            "subject": "Question",
            "message": "How are cities counted?",
        }

    @pytest.mark.asyncio
    async def test_third_message_rejected(self, client, dispatcher):
        first = await client.post("/api/support", json=self._ticket())
        second = await client.post("/api/support", json=self._ticket())
        third = await client.post("/api/support", json=self._ticket())

        assert first.json() == {"status": "sent", "remaining": 1, "capacity": 2}
        assert second.json()["remaining"] == 0
        assert third.status_code == 429
        assert "limit of 2 messages" in third.json()["detail"]
        assert len(dispatcher.sent) == 2

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await client.post("/api/support", json=self._ticket("not-an-email"))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_dispatch_failure(self, client, dispatcher):
        dispatcher.error = EmailSendError("rejected", status_code=400)

        response = await client.post("/api/support", json=self._ticket())

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_not_configured(self, client, dispatcher):
        dispatcher.configured = False

        response = await client.post("/api/support", json=self._ticket())

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_limits(self, client):
        response = await client.get("/api/support/limits", params={"email": "a@example.com"})
        assert response.json() == {"message": "You can send up to 2 messages every 7 days."}

    @pytest.mark.asyncio
    async def test_limits_bad_email(self, client):
        response = await client.get("/api/support/limits", params={"email": "nope"})
        assert response.status_code == 422


class TestUsers:
    """Tests for profile routes."""

    @pytest.mark.asyncio
    async def test_without_database(self, client, auth_headers):
        response = await client.get("/api/users/me", headers=auth_headers)
        assert response.status_code == 503

    @pytest.fixture
    async def with_database(self, app):
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        async def override():
            async with factory() as session:
                yield session

        app.dependency_overrides[get_db_session] = override
        yield
        app.dependency_overrides.clear()
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_profile_created_and_updated(self, client, auth_headers, with_database):
        created = await client.get("/api/users/me", headers=auth_headers)

        assert created.status_code == 200
        assert created.json()["email"] == EMAIL
        assert created.json()["sports"] == []
        assert created.json()["tolerance"] == "moderate"

        updated = await client.patch(
            "/api/users/me",
            json={"sports": ["Running", "hiking"], "tolerance": "high"},
            headers=auth_headers,
        )

        assert updated.status_code == 200
        assert updated.json()["sports"] == ["running", "hiking"]
        assert updated.json()["tolerance"] == "high"

    @pytest.mark.asyncio
    async def test_invalid_username(self, client, auth_headers, with_database):
        response = await client.patch(
            "/api/users/me", json={"username": "no spaces"}, headers=auth_headers
        )
        assert response.status_code == 422


class TestConfigureServices:
    def test_builds_services_without_database(self):
        app = create_app()

        configure_services(app)

        assert app.state.city_policy.ledger is None
        assert isinstance(app.state.support_policy.ledger, QuotaLedger)
        assert not app.state.support_service.dispatcher.is_configured

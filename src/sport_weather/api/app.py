"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from sport_weather.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
```

## Configuration

The app is configured via environment variables. See `sport_weather.config`
for available settings.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sport_weather.config import get_settings
from sport_weather.database.connection import (
    DatabaseNotConfiguredError,
    close_db,
    create_tables,
    get_session_factory,
    init_db,
)
from sport_weather.policies.factory import build_city_policy, build_support_policy
from sport_weather.providers.nominatim import NominatimGeocoder
from sport_weather.providers.openmeteo import OpenMeteoProvider
from sport_weather.quota.base import InvalidInputError
from sport_weather.quota.memory import MemoryLedgerBackend
from sport_weather.support.email import (
    EmailJSDispatcher,
    EmailNotConfiguredError,
    EmailSendError,
    SupportQuotaExceededError,
)
from sport_weather.support.service import SupportService

logger = logging.getLogger(__name__)


def configure_services(app: FastAPI) -> None:
    """Build quota policies, providers and the support service on `app.state`.

    Must run after `init_db()` so the policies see the session factory.
    """
    settings = get_settings()
    session_factory = get_session_factory()

    # Outlives requests so the fallback counter survives database outages
    app.state.support_local_backend = MemoryLedgerBackend()

    app.state.city_policy = build_city_policy(settings, session_factory)
    app.state.support_policy = build_support_policy(
        settings, session_factory, app.state.support_local_backend
    )

    app.state.forecast_provider = OpenMeteoProvider(
        base_url=settings.open_meteo_base_url,
        geocoding_url=settings.open_meteo_geocoding_url,
        language=settings.geocoding_language,
        user_agent=settings.provider_user_agent,
        timeout=settings.provider_timeout_seconds,
    )
    app.state.reverse_geocoder = NominatimGeocoder(
        base_url=settings.nominatim_base_url,
        language=settings.geocoding_language,
        user_agent=settings.provider_user_agent,
        timeout=settings.provider_timeout_seconds,
    )

    dispatcher = EmailJSDispatcher(
        service_id=settings.emailjs_service_id,
        template_id=settings.emailjs_template_id,
        public_key=settings.emailjs_public_key,
        private_key=settings.emailjs_private_key,
        api_url=settings.emailjs_api_url,
        recipient_name=settings.support_recipient_name,
        timeout=settings.provider_timeout_seconds,
    )
    if not settings.emailjs_configured:
        logger.warning("EmailJS not configured, support messages are disabled")
    app.state.support_service = SupportService(app.state.support_policy, dispatcher)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks:
    - Initialize database connection (and tables outside production)
    - Build quota policies and provider clients
    - Clean up on shutdown
    """
    settings = get_settings()

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    await init_db()
    if settings.database_configured and not settings.is_production:
        await create_tables()
    configure_services(app)

    yield

    logger.info("Shutting down")
    await app.state.forecast_provider.aclose()
    await app.state.reverse_geocoder.aclose()
    await close_db()


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.exception_handler(SupportQuotaExceededError)
    async def support_quota_handler(request: Request, exc: SupportQuotaExceededError):
        decision = exc.decision
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "detail": str(exc),
                "remaining": decision.remaining,
                "capacity": decision.capacity,
                "reset_at": decision.reset_at.isoformat() if decision.reset_at else None,
            },
        )

    @app.exception_handler(EmailNotConfiguredError)
    async def email_not_configured_handler(request: Request, exc: EmailNotConfiguredError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Support messages are temporarily unavailable"},
        )

    @app.exception_handler(EmailSendError)
    async def email_send_handler(request: Request, exc: EmailSendError):
        logger.error(f"Support email dispatch failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Failed to send support message"},
        )

    @app.exception_handler(DatabaseNotConfiguredError)
    async def database_not_configured_handler(
        request: Request, exc: DatabaseNotConfiguredError
    ):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "User profiles are not available"},
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Weather-based sport recommendations",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    from sport_weather.api.routes import forecasts, locations, support, users

    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(locations.router, prefix="/api/locations", tags=["Locations"])
    app.include_router(forecasts.router, prefix="/api/forecasts", tags=["Forecasts"])
    app.include_router(support.router, prefix="/api/support", tags=["Support"])

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "database": settings.database_configured,
        }

    return app

"""FastAPI application and routes.

## API Structure

- /api/users - Profile (sports and weather tolerance)
- /api/locations - City search
- /api/forecasts - Metered forecasts with sport recommendations
- /api/support - Metered support messages

## Authentication

Everything except location search and support messages requires a session
token, sent as the session cookie or a bearer header.
"""

from sport_weather.api.app import create_app

__all__ = ["create_app"]

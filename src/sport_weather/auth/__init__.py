"""Authentication for sport weather recommendations.

Accounts live with an external identity provider. This package verifies the
signed session token the login flow issues and maps it to a user profile.

## Security

- Tokens are signed with the application secret key
- Tokens are accepted from the session cookie or a bearer header
"""

from sport_weather.auth.session import (
    create_session_token,
    verify_session_token,
    SessionData,
)
from sport_weather.auth.dependencies import (
    get_current_session,
    get_current_user,
    get_user_profile,
)

__all__ = [
    "create_session_token",
    "verify_session_token",
    "SessionData",
    "get_current_session",
    "get_current_user",
    "get_user_profile",
]

"""Session tokens.

Users sign in through an external identity provider. The login flow hands
the browser a signed JWT, which is sent back either in the session cookie
or as an `Authorization: Bearer` header. This module only creates and
verifies those tokens.

## Token Structure

```json
{
  "sub": "user-uuid",
  "email": "user@example.com",
  "iat": 1234567890,
  "exp": 1235172690,
  "type": "session"
}
```

The email travels in the token because the quota policies attribute usage to
both the user id and the email.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from sport_weather.config import get_settings
from sport_weather.quota.base import InvalidInputError, normalize_email

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "session"


@dataclass
class SessionData:
    """Data stored in the session token."""

    user_id: uuid.UUID
    email: str
    created_at: datetime
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) > self.expires_at

    @property
    def subject_id(self) -> str:
        """User id in the form stored by the quota ledger."""
        return str(self.user_id)


def create_session_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token for a user.

    Args:
        user_id: The user's UUID
        email: The user's email address
        expires_delta: Custom expiration time (or use default from settings)

    Returns:
        Signed JWT token string
    """
    settings = get_settings()

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.session_max_age_seconds)

    payload = {
        "sub": str(user_id),
        "email": normalize_email(email),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": TOKEN_TYPE,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_session_token(token: str) -> SessionData | None:
    """Verify and decode a session token.

    Returns:
        SessionData if valid, None if invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    try:
        session = SessionData(
            user_id=uuid.UUID(payload["sub"]),
            email=normalize_email(payload["email"]),
            created_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, ValueError, TypeError, InvalidInputError) as e:
        logger.debug(f"Invalid token payload: {e}")
        return None

    if session.is_expired:
        logger.debug("Session token expired")
        return None

    return session

"""FastAPI dependencies for authentication.

## Usage

```python
from fastapi import Depends
from sport_weather.auth import get_current_session, get_current_user
from sport_weather.database import User

@router.get("/limits")
async def limits(session: SessionData = Depends(get_current_session)):
    # Only needs the token, works without a database
    ...

@router.get("/me")
async def profile(user: User = Depends(get_current_user)):
    return {"email": user.email, "sports": user.sports}
```
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sport_weather.auth.session import SessionData, verify_session_token
from sport_weather.auth.validation import username_from_email
from sport_weather.config import get_settings
from sport_weather.database.connection import get_db_session, get_session_factory
from sport_weather.database.models import User

logger = logging.getLogger(__name__)


def _extract_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(get_settings().session_cookie_name)


async def get_session_data(request: Request) -> SessionData | None:
    """Extract and verify session data from the cookie or bearer header.

    Returns None if no session or invalid session.
    """
    token = _extract_token(request)
    if not token:
        return None
    return verify_session_token(token)


async def get_current_session(
    session: SessionData | None = Depends(get_session_data),
) -> SessionData:
    """Require a valid session.

    Raises 401 if not authenticated.
    """
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_current_user(
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Get the profile of the authenticated user.

    A profile is created on first use, since accounts live with the
    identity provider.
    """
    result = await db.execute(select(User).where(User.id == session.user_id))
    user = result.scalar_one_or_none()

    if user is None:
        logger.info(f"Creating profile for new user {session.user_id}")
        user = User(
            id=session.user_id,
            email=session.email,
            username=username_from_email(session.email, session.subject_id),
            sports=[],
            tolerance="moderate",
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

    return user


async def get_user_profile(
    session: SessionData = Depends(get_current_session),
) -> User | None:
    """Get the stored profile of an authenticated user, if there is one.

    Returns None without a database or when the lookup fails, so callers can
    fall back to default preferences. Never creates a profile.
    """
    session_factory = get_session_factory()
    if session_factory is None:
        return None

    try:
        async with session_factory() as db:
            result = await db.execute(select(User).where(User.id == session.user_id))
            return result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.warning(f"Failed to load profile for {session.user_id}: {e}")
        return None

"""User profile routes."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sport_weather.auth.dependencies import get_current_user
from sport_weather.auth.validation import validate_sports, validate_username
from sport_weather.database.connection import get_db_session
from sport_weather.database.models import User
from sport_weather.models.sport import ToleranceLevel

router = APIRouter()


class UserResponse(BaseModel):
    """User response model."""

    id: str
    email: str
    username: str
    sports: list[str]
    tolerance: ToleranceLevel
    created_at: datetime | None


class UserUpdate(BaseModel):
    """Update profile request."""

    username: str | None = None
    sports: list[str] | None = None
    tolerance: ToleranceLevel | None = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str | None) -> str | None:
        return validate_username(v) if v is not None else None

    @field_validator("sports")
    @classmethod
    def check_sports(cls, v: list[str] | None) -> list[str] | None:
        return validate_sports(v) if v is not None else None


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        username=user.username,
        sports=list(user.sports or []),
        tolerance=ToleranceLevel(user.tolerance),
        created_at=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: User = Depends(get_current_user),
) -> UserResponse:
    """Get the current user's profile."""
    return _to_response(user)


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Update the current user's sports, tolerance or username."""
    if data.username is not None:
        user.username = data.username
    if data.sports is not None:
        user.sports = data.sports
    if data.tolerance is not None:
        user.tolerance = data.tolerance.value

    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username is already taken",
        )
    await db.refresh(user)

    return _to_response(user)

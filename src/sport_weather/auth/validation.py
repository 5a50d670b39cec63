"""Validation of user profile input."""

from __future__ import annotations

import re

from sport_weather.models.sport import SPORTS_BY_ID

USERNAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.-]{2,49}$")


def validate_username(value: str) -> str:
    """Normalize a username to lowercase and check its characters.

    Raises:
        ValueError: If the username is not 3-50 characters of
            letters, digits, '_', '.' or '-'
    """
    username = value.strip().lower()
    if not USERNAME_PATTERN.match(username):
        raise ValueError(
            "Username must be 3-50 characters of letters, digits, '_', '.' or '-'"
        )
    return username


def validate_sports(values: list[str]) -> list[str]:
    """Check sport ids against the catalog, dropping duplicates.

    Raises:
        ValueError: If any sport id is unknown
    """
    sports: list[str] = []
    for value in values:
        sport_id = value.strip().lower()
        if sport_id not in SPORTS_BY_ID:
            raise ValueError(f"Unknown sport: {value}")
        if sport_id not in sports:
            sports.append(sport_id)
    return sports


def username_from_email(email: str, user_id: str) -> str:
    """Derive a default username for a new profile."""
    local = re.sub(r"[^a-z0-9_.-]", "", email.split("@", 1)[0].lower()) or "user"
    return f"{local[:40]}-{user_id.replace('-', '')[:6]}"

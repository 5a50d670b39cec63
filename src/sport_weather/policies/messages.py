"""Helpers for user-facing quota messages."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

ONE_DAY = timedelta(days=1)


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    """Return '<count> <noun>' with the noun matching the count."""
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural_form or singular + 's'}"


def days_until_reset(
    reset_at: datetime | None,
    now: datetime,
    period: timedelta,
) -> int:
    """Whole days, rounded up, until the quota frees a unit.

    Falls back to the full period length when the reset time is unknown.
    """
    if reset_at is None:
        return math.ceil(period / ONE_DAY)
    return max(0, math.ceil((reset_at - now) / ONE_DAY))

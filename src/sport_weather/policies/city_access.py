"""City access policy.

Limits how many different cities a user may look up per rolling period
(7 distinct cities every 7 days by default). The quota protects the
forecast provider from users sweeping through arbitrary locations.

## Rules

- The user's detected ("current") location is always free and never
  recorded.
- Looking up a city already counted in the window is free and refreshes
  its timestamp.
- Cities match case-insensitively after trimming, without fuzzy matching:
  "madrid" is "Madrid", but "Madrid, Spain" is a different city.
- The city name is the label the client sends. It is not checked against
  the coordinates, and the current-location flag is trusted as sent, so a
  client that lies about either is not metered correctly.
- The user id and the email both identify the user; a record made under
  either one counts.
- Infrastructure failures never block a user: checks fail open and lost
  records are only logged.

## Usage

```python
policy = CityAccessPolicy(ledger)

decision = await policy.can_access_city(user_id, email, "Madrid")
if decision.allowed:
    forecast = await provider.get_daily_forecast(coords)
    await policy.record_city_access(user_id, email, "Madrid", 40.41, -3.70)
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sport_weather.policies.messages import days_until_reset, plural
from sport_weather.quota.base import (
    LedgerUnavailableError,
    QuotaDecision,
    SubjectKeys,
    normalize_label,
)
from sport_weather.quota.ledger import FallbackLedger, QuotaLedger

logger = logging.getLogger(__name__)

DEFAULT_CITY_CAPACITY = 7
DEFAULT_CITY_PERIOD = timedelta(days=7)

CITY_SCOPE = "city"


@dataclass
class CityAccessDecision(QuotaDecision):
    """Quota decision for a city lookup."""

    is_current_location: bool = False


class CityAccessPolicy:
    """Decides whether a location search may proceed to a forecast fetch."""

    def __init__(
        self,
        ledger: QuotaLedger | FallbackLedger | None,
        capacity: int = DEFAULT_CITY_CAPACITY,
        period: timedelta = DEFAULT_CITY_PERIOD,
    ):
        """Initialize the policy.

        Args:
            ledger: Quota ledger, or None to run without limits
                (no persistent storage configured)
            capacity: Distinct cities allowed per period
            period: Rolling window length
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ledger = ledger
        self.capacity = capacity
        self.period = period

    @property
    def period_days(self) -> int:
        return self.period.days

    def _limit_reached_message(self, days: int) -> str:
        return (
            f"You have reached the limit of {self.capacity} cities. "
            f"You can explore more in {plural(days, 'day')}."
        )

    async def can_access_city(
        self,
        subject_id: str | None,
        subject_email: str,
        city_name: str,
        is_current_location: bool = False,
    ) -> CityAccessDecision:
        """Check whether the user may look up `city_name`.

        Args:
            subject_id: Authenticated user identifier
            subject_email: User email (normalized here)
            city_name: City name as searched
            is_current_location: The lookup is for the user's detected location

        Returns:
            CityAccessDecision with a user-facing message

        Raises:
            InvalidInputError: If the email or city name is malformed
        """
        if is_current_location:
            logger.debug("Current location lookup, not metered")
            return CityAccessDecision(
                allowed=True,
                remaining=self.capacity,
                capacity=self.capacity,
                is_current_location=True,
            )

        subject = SubjectKeys.for_user(subject_id, subject_email)
        label = normalize_label(city_name)

        if self.ledger is None:
            logger.debug("No quota ledger configured, city lookups are unlimited")
            return CityAccessDecision(
                allowed=True, remaining=self.capacity, capacity=self.capacity
            )

        try:
            decision = await self.ledger.check_quota(
                subject, label, self.capacity, self.period
            )
        except LedgerUnavailableError as e:
            logger.warning(f"City quota check failed, allowing access: {e}")
            decision = QuotaDecision.unlimited(self.capacity)

        if decision.already_counted:
            message = "City previously queried."
        elif decision.allowed:
            message = (
                f"You have {plural(decision.remaining, 'new city', 'new cities')} "
                "left this week."
            )
        else:
            days = days_until_reset(decision.reset_at, self.ledger.now(), self.period)
            message = self._limit_reached_message(days)
            logger.info(f"City limit reached, resets in {days} days")

        return CityAccessDecision(
            allowed=decision.allowed,
            remaining=decision.remaining,
            capacity=decision.capacity,
            reset_at=decision.reset_at,
            already_counted=decision.already_counted,
            message=message,
        )

    async def record_city_access(
        self,
        subject_id: str | None,
        subject_email: str,
        city_name: str,
        latitude: float,
        longitude: float,
        is_current_location: bool = False,
    ) -> None:
        """Record a city lookup after its forecast was fetched.

        Must only follow an allowed `can_access_city`. Storage failures are
        logged and swallowed.
        """
        if is_current_location:
            logger.debug("Current location lookup, not recorded")
            return
        if self.ledger is None:
            return

        subject = SubjectKeys.for_user(subject_id, subject_email)
        label = normalize_label(city_name)

        try:
            await self.ledger.record_consumption(
                subject,
                label,
                self.period,
                metadata={
                    "city_name": city_name.strip(),
                    "latitude": latitude,
                    "longitude": longitude,
                },
            )
        except LedgerUnavailableError as e:
            logger.warning(f"Failed to record city access for '{label}': {e}")

    async def get_limit_info(self, subject_id: str | None, subject_email: str) -> str:
        """Describe the user's remaining city quota."""
        default = (
            f"You can explore up to {self.capacity} different cities "
            f"every {plural(self.period_days, 'day')}."
        )
        if self.ledger is None:
            return default

        subject = SubjectKeys.for_user(subject_id, subject_email)
        try:
            window = await self.ledger.get_window(subject, self.capacity, self.period)
        except LedgerUnavailableError as e:
            logger.warning(f"Failed to load city quota usage: {e}")
            return default

        if window.remaining == self.capacity:
            return default
        if window.remaining > 0:
            return (
                f"You have {plural(window.remaining, 'new city', 'new cities')} "
                "available this week."
            )
        if window.reset_at is not None:
            days = days_until_reset(window.reset_at, self.ledger.now(), self.period)
            return self._limit_reached_message(days)
        return (
            f"You have reached the limit of {self.capacity} cities "
            f"every {plural(self.period_days, 'day')}."
        )

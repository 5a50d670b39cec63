"""Support message policy.

Caps outbound support messages per sender email (2 messages every 7 days by
default) to keep the email integration from being abused. Senders are
identified by email only, so signed-out users are metered too, and every
send counts: the cap bounds total messages, not distinct ones.

The policy is normally given a `FallbackLedger` whose secondary is an
in-process store. When the database cannot be reached the local counter
keeps the cap approximately enforced.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sport_weather.policies.messages import days_until_reset, plural
from sport_weather.quota.base import (
    LedgerUnavailableError,
    QuotaDecision,
    SubjectKeys,
)
from sport_weather.quota.ledger import FallbackLedger, QuotaLedger

logger = logging.getLogger(__name__)

DEFAULT_SUPPORT_CAPACITY = 2
DEFAULT_SUPPORT_PERIOD = timedelta(days=7)

SUPPORT_SCOPE = "support"


class SupportMessagePolicy:
    """Meters support messages per sender email."""

    def __init__(
        self,
        ledger: QuotaLedger | FallbackLedger,
        capacity: int = DEFAULT_SUPPORT_CAPACITY,
        period: timedelta = DEFAULT_SUPPORT_PERIOD,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.ledger = ledger
        self.capacity = capacity
        self.period = period

    @property
    def period_days(self) -> int:
        return self.period.days

    async def can_send_message(self, email: str) -> QuotaDecision:
        """Check whether `email` may send another support message.

        Raises:
            InvalidInputError: If the email is malformed
        """
        subject = SubjectKeys.for_email(email)

        try:
            decision = await self.ledger.check_quota(
                subject, None, self.capacity, self.period
            )
        except LedgerUnavailableError as e:
            logger.warning(f"Support quota check failed, allowing send: {e}")
            decision = QuotaDecision.unlimited(self.capacity)

        if decision.allowed:
            decision.message = (
                f"You have {plural(decision.remaining, 'message')} left in this period."
            )
        else:
            days = days_until_reset(decision.reset_at, self.ledger.now(), self.period)
            decision.message = (
                f"You have reached the limit of {self.capacity} messages. "
                f"You can send more in {plural(days, 'day')}."
            )
        return decision

    async def record_message_sent(self, email: str) -> None:
        """Count a message the email provider accepted.

        Storage failures (including the fallback store) are logged and
        swallowed; the message has already been sent.
        """
        subject = SubjectKeys.for_email(email)

        try:
            await self.ledger.record_consumption(subject, None, self.period)
        except LedgerUnavailableError as e:
            logger.error(f"Failed to record support message: {e}")
            return

        logger.info("Support message recorded")

    async def get_limit_info(self, email: str) -> str:
        """Describe the sender's remaining message quota."""
        subject = SubjectKeys.for_email(email)
        default = (
            f"You can send up to {plural(self.capacity, 'message')} "
            f"every {plural(self.period_days, 'day')}."
        )

        try:
            window = await self.ledger.get_window(
                subject, self.capacity, self.period, distinct=False
            )
        except LedgerUnavailableError as e:
            logger.warning(f"Failed to load support quota usage: {e}")
            return default

        if window.remaining == self.capacity:
            return default
        if window.remaining > 0:
            return f"You have {plural(window.remaining, 'message')} available in this period."
        if window.reset_at is not None:
            days = days_until_reset(window.reset_at, self.ledger.now(), self.period)
            return (
                f"You have reached the limit of {self.capacity} messages. "
                f"You can send more in {plural(days, 'day')}."
            )
        return (
            f"You have reached the limit of {self.capacity} messages "
            f"every {plural(self.period_days, 'day')}."
        )

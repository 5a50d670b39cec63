"""Support message sending.

Order of operations for a ticket:

1. The dispatcher must be configured.
2. The sender's quota is checked; a denial stops here, before the email
   provider is contacted.
3. The email is dispatched.
4. The send is recorded only after the provider accepted it, so a failed
   dispatch does not consume quota.
"""

from __future__ import annotations

import logging

from sport_weather.policies.support_messages import SupportMessagePolicy
from sport_weather.quota.base import QuotaDecision
from sport_weather.support.email import (
    EmailDispatcher,
    EmailNotConfiguredError,
    SupportQuotaExceededError,
    SupportTicket,
)

logger = logging.getLogger(__name__)


class SupportService:
    """Sends support tickets under the support message quota.

    Example:
        ```python
        service = SupportService(policy, EmailJSDispatcher(...))
        try:
            decision = await service.send_support_message(ticket)
        except SupportQuotaExceededError as e:
            print(e.decision.message)
        ```
    """

    def __init__(self, policy: SupportMessagePolicy, dispatcher: EmailDispatcher):
        self.policy = policy
        self.dispatcher = dispatcher

    async def send_support_message(self, ticket: SupportTicket) -> QuotaDecision:
        """Send a ticket if the sender still has quota.

        Returns:
            The quota decision that allowed the send

        Raises:
            EmailNotConfiguredError: If no email provider is configured
            SupportQuotaExceededError: If the sender reached the limit
            EmailSendError: If the provider failed; no quota is consumed
        """
        if not self.dispatcher.is_configured:
            raise EmailNotConfiguredError()

        decision = await self.policy.can_send_message(ticket.user_email)
        if not decision.allowed:
            logger.warning("Support message limit reached for sender")
            raise SupportQuotaExceededError(decision)

        await self.dispatcher.send(ticket)
        await self.policy.record_message_sent(ticket.user_email)

        return decision

"""Support email dispatch.

Support tickets are delivered through the EmailJS REST API:

```
POST https://api.emailjs.com/api/v1.0/email/send
{
  "service_id": "...",
  "template_id": "...",
  "user_id": "<public key>",
  "accessToken": "<private key, optional>",
  "template_params": {
    "from_name": "...", "from_email": "...", "subject": "...",
    "message": "...", "to_name": "..."
  }
}
```

EmailJS answers `200 OK` with a plain-text body when the message is
accepted. Sends are not retried, a retry after a timeout could deliver the
message twice.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field

from sport_weather.quota.base import QuotaDecision

logger = logging.getLogger(__name__)


class SupportError(Exception):
    """Base exception for support message errors."""


class EmailNotConfiguredError(SupportError):
    """Raised when no email provider credentials are configured."""

    def __init__(self, message: str = "Email service is not configured"):
        super().__init__(message)


class EmailSendError(SupportError):
    """Raised when the email provider rejects or fails to send a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SupportQuotaExceededError(SupportError):
    """Raised when the sender has used up their support message quota."""

    def __init__(self, decision: QuotaDecision):
        super().__init__(decision.message or "Support message limit reached")
        self.decision = decision


class SupportTicket(BaseModel):
    """A support request submitted by a user."""

    user_name: str = Field(..., min_length=1, max_length=100)
    user_email: str = Field(..., min_length=3, max_length=254)
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


class EmailDispatcher(ABC):
    """Interface for outbound support email providers."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are available."""

    @abstractmethod
    async def send(self, ticket: SupportTicket) -> None:
        """Send a ticket to the support inbox.

        Raises:
            EmailNotConfiguredError: If credentials are missing
            EmailSendError: If the provider did not accept the message
        """


class EmailJSDispatcher(EmailDispatcher):
    """Dispatcher for the EmailJS REST API."""

    def __init__(
        self,
        service_id: str | None,
        template_id: str | None,
        public_key: str | None,
        private_key: str | None = None,
        api_url: str = "https://api.emailjs.com/api/v1.0/email/send",
        recipient_name: str = "Sport Weather Support",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.private_key = private_key
        self.api_url = api_url
        self.recipient_name = recipient_name
        self.timeout = timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    def _build_payload(self, ticket: SupportTicket) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "from_name": ticket.user_name,
                "from_email": ticket.user_email,
                "subject": ticket.subject,
                "message": ticket.message,
                "to_name": self.recipient_name,
            },
        }
        if self.private_key:
            payload["accessToken"] = self.private_key
        return payload

    async def send(self, ticket: SupportTicket) -> None:
        if not self.is_configured:
            logger.error(
                "EmailJS is not configured. Set EMAILJS_SERVICE_ID, "
                "EMAILJS_TEMPLATE_ID and EMAILJS_PUBLIC_KEY"
            )
            raise EmailNotConfiguredError()

        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(self.api_url, json=self._build_payload(ticket))
        except httpx.HTTPError as e:
            raise EmailSendError(f"Email request failed: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        if response.status_code >= 400:
            raise EmailSendError(
                f"Email provider rejected message: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

        logger.info(f"Support email accepted by EmailJS ({response.status_code})")

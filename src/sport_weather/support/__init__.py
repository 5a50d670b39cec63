"""Support tickets and their email dispatch."""

from sport_weather.support.email import (
    EmailDispatcher,
    EmailJSDispatcher,
    EmailNotConfiguredError,
    EmailSendError,
    SupportError,
    SupportQuotaExceededError,
    SupportTicket,
)
from sport_weather.support.service import SupportService

__all__ = [
    "EmailDispatcher",
    "EmailJSDispatcher",
    "EmailNotConfiguredError",
    "EmailSendError",
    "SupportError",
    "SupportQuotaExceededError",
    "SupportTicket",
    "SupportService",
]

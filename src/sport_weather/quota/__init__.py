"""Sliding-window quota ledger and its storage backends."""

from sport_weather.quota.base import (
    AccessRecord,
    InvalidInputError,
    LedgerBackend,
    LedgerUnavailableError,
    QuotaDecision,
    QuotaWindow,
    SubjectKeys,
    normalize_email,
    normalize_label,
)
from sport_weather.quota.ledger import FallbackLedger, QuotaLedger
from sport_weather.quota.memory import MemoryLedgerBackend
from sport_weather.quota.sql import SqlLedgerBackend

__all__ = [
    "AccessRecord",
    "InvalidInputError",
    "LedgerBackend",
    "LedgerUnavailableError",
    "QuotaDecision",
    "QuotaWindow",
    "SubjectKeys",
    "normalize_email",
    "normalize_label",
    "FallbackLedger",
    "QuotaLedger",
    "MemoryLedgerBackend",
    "SqlLedgerBackend",
]

"""Quota ledger primitives.

This module defines the records, decisions and storage interface shared by
all quota ledgers.

## Subject identity

A subject is identified by one or more aliasing keys: an opaque user id and
a normalized lowercase email. A stored record is attributed to the caller
when ANY key matches, so a user who signs in with a new account but the same
email still sees the cities they already consumed.

## Backend primitives

Storage backends only need four operations:

| Operation | Purpose |
|-----------|---------|
| `purge_before` | delete every record of a scope last seen before a cutoff |
| `find_records` | range query by `last_seen_at`, OR over subject keys, optional label |
| `insert_record` | insert a new record |
| `touch_record` | refresh `last_seen_at` of an existing record |
"""

from __future__ import annotations

import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class InvalidInputError(ValueError):
    """Raised when an email or resource label is malformed."""


class LedgerUnavailableError(Exception):
    """Raised when the ledger storage cannot be reached or fails.

    Callers treat this as transient: quota checks fail open and records fall
    back to a secondary store or are dropped after logging.
    """

    def __init__(self, message: str, scope: str | None = None):
        super().__init__(message)
        self.scope = scope


def normalize_email(email: str) -> str:
    """Lowercase and trim an email, rejecting malformed values."""
    normalized = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise InvalidInputError(f"Invalid email address: '{email}'")
    return normalized


def normalize_label(label: str) -> str:
    """Normalize a resource label for case-insensitive exact matching.

    Only surrounding whitespace and case are normalized: "Madrid" and
    " madrid " are the same resource, "Madrid, Spain" is a different one.
    """
    normalized = (label or "").strip().lower()
    if not normalized:
        raise InvalidInputError("Resource label must not be blank")
    return normalized


@dataclass(frozen=True)
class SubjectKeys:
    """The aliasing identity keys of a rate-limited actor."""

    subject_id: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if not self.subject_id and not self.email:
            raise ValueError("At least one subject key is required")

    @classmethod
    def for_user(cls, subject_id: str | None, email: str) -> SubjectKeys:
        return cls(subject_id=subject_id or None, email=normalize_email(email))

    @classmethod
    def for_email(cls, email: str) -> SubjectKeys:
        return cls(email=normalize_email(email))

    def matches(self, record: AccessRecord) -> bool:
        """Check whether any key attributes the record to this subject."""
        if self.subject_id and record.subject_id == self.subject_id:
            return True
        if self.email and record.subject_email == self.email:
            return True
        return False


@dataclass
class AccessRecord:
    """A single tracked consumption event."""

    scope: str
    subject_id: str | None
    subject_email: str | None
    resource_label: str | None
    occurred_at: datetime
    last_seen_at: datetime
    details: dict[str, Any] | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class QuotaWindow:
    """Usage of a subject within the current rolling window."""

    count: int
    capacity: int
    remaining: int
    reset_at: datetime | None = None


@dataclass
class QuotaDecision:
    """Outcome of a quota check.

    Denials are returned as decisions rather than raised, so callers can
    explain when the quota resets.
    """

    allowed: bool
    remaining: int
    capacity: int
    reset_at: datetime | None = None
    already_counted: bool = False
    message: str | None = None

    @classmethod
    def unlimited(cls, capacity: int, message: str | None = None) -> QuotaDecision:
        """Decision used when quota is not enforced (free path, fail open)."""
        return cls(allowed=True, remaining=capacity, capacity=capacity, message=message)


class LedgerBackend(ABC):
    """Storage interface for quota ledgers.

    Implementations must raise `LedgerUnavailableError` for I/O failures and
    return empty results (never raise) when nothing matches.
    """

    name: str

    @abstractmethod
    async def purge_before(self, scope: str, cutoff: datetime) -> int:
        """Delete records of `scope` whose `last_seen_at` is before `cutoff`.

        Returns:
            Number of deleted records
        """

    @abstractmethod
    async def find_records(
        self,
        scope: str,
        subject: SubjectKeys,
        since: datetime,
        resource_label: str | None = None,
    ) -> list[AccessRecord]:
        """Find in-window records attributed to `subject`.

        Args:
            scope: Ledger namespace
            subject: Subject keys, matched with a logical OR
            since: Only records with `last_seen_at >= since`
            resource_label: Restrict to this normalized label (any label if None)

        Returns:
            Records ordered by `last_seen_at`, oldest first
        """

    @abstractmethod
    async def insert_record(self, record: AccessRecord) -> None:
        """Insert a new record."""

    @abstractmethod
    async def touch_record(
        self, scope: str, record_id: uuid.UUID, seen_at: datetime
    ) -> None:
        """Refresh `last_seen_at` of an existing record."""

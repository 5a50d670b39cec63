"""Database models for sport weather recommendations.

## Schema Overview

```
users
quota_access_records  - sliding-window quota ledger (city lookups, support sends)
```

Quota records are keyed by ``scope`` so several ledgers can share the table.
A record belongs to a subject when either ``subject_id`` or ``subject_email``
matches, which is why both columns are indexed separately.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Index,
    String,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    type_annotation_map = {
        dict[str, Any]: JSON().with_variant(JSONB, "postgresql"),
        list[str]: JSON().with_variant(JSONB, "postgresql"),
    }


class User(Base):
    """User profile.

    Accounts are created by the external auth provider; the ``id`` is the
    provider's stable subject identifier. The profile stores the sports the
    user follows and their weather tolerance.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    # Preferences
    sports: Mapped[list[str]] = mapped_column(default=list)
    tolerance: Mapped[str] = mapped_column(
        String(16), default="moderate"
    )  # low, moderate, high

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class QuotaAccessRecord(Base):
    """One tracked consumption event in a quota ledger.

    For labelled resources (city names) there is at most one row per subject
    and label inside the rolling window; re-access refreshes ``last_seen_at``.
    Unlabelled resources (support messages) get one row per event.
    """

    __tablename__ = "quota_access_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    scope: Mapped[str] = mapped_column(String(32), nullable=False)

    # Subject keys (either one attributes the row to the caller)
    subject_id: Mapped[str | None] = mapped_column(String(255))
    subject_email: Mapped[str | None] = mapped_column(String(255))

    # Normalized lowercase label, NULL for plain counters
    resource_label: Mapped[str | None] = mapped_column(String(255))

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Free-form metadata, e.g. {"latitude": 40.4, "longitude": -3.7}
    details: Mapped[dict[str, Any] | None] = mapped_column()

    __table_args__ = (
        Index("ix_quota_records_scope_seen", "scope", "last_seen_at"),
        Index("ix_quota_records_subject_id", "scope", "subject_id"),
        Index("ix_quota_records_subject_email", "scope", "subject_email"),
    )

    def __repr__(self) -> str:
        return f"<QuotaAccessRecord {self.scope}:{self.resource_label}>"

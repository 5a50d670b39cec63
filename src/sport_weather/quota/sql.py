"""SQLAlchemy-backed quota ledger storage.

Records live in the `quota_access_records` table. The subject lookup is a
single union predicate:

```sql
SELECT ... FROM quota_access_records
WHERE scope = :scope
  AND last_seen_at >= :since
  AND (subject_id = :subject_id OR subject_email = :email)
  AND lower(resource_label) = :label      -- only for existence checks
ORDER BY last_seen_at
```
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sport_weather.database.models import QuotaAccessRecord
from sport_weather.quota.base import (
    AccessRecord,
    LedgerBackend,
    LedgerUnavailableError,
    SubjectKeys,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: QuotaAccessRecord) -> AccessRecord:
    return AccessRecord(
        id=row.id,
        scope=row.scope,
        subject_id=row.subject_id,
        subject_email=row.subject_email,
        resource_label=row.resource_label,
        occurred_at=_as_utc(row.occurred_at),
        last_seen_at=_as_utc(row.last_seen_at),
        details=row.details,
    )


class SqlLedgerBackend(LedgerBackend):
    """Ledger storage in a relational database.

    Example:
        ```python
        backend = SqlLedgerBackend(get_session_factory())
        ledger = QuotaLedger(backend, scope="city")
        ```
    """

    name = "sql"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    def _subject_predicate(self, subject: SubjectKeys):
        clauses = []
        if subject.subject_id:
            clauses.append(QuotaAccessRecord.subject_id == subject.subject_id)
        if subject.email:
            clauses.append(QuotaAccessRecord.subject_email == subject.email)
        return or_(*clauses)

    async def purge_before(self, scope: str, cutoff: datetime) -> int:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    delete(QuotaAccessRecord).where(
                        QuotaAccessRecord.scope == scope,
                        QuotaAccessRecord.last_seen_at < cutoff,
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerUnavailableError(f"Failed to purge records: {e}", scope) from e

        purged = result.rowcount or 0
        if purged:
            logger.debug(f"Purged {purged} expired {scope} records")
        return purged

    async def find_records(
        self,
        scope: str,
        subject: SubjectKeys,
        since: datetime,
        resource_label: str | None = None,
    ) -> list[AccessRecord]:
        query = select(QuotaAccessRecord).where(
            QuotaAccessRecord.scope == scope,
            QuotaAccessRecord.last_seen_at >= since,
            self._subject_predicate(subject),
        )
        if resource_label is not None:
            query = query.where(
                func.lower(QuotaAccessRecord.resource_label) == resource_label
            )
        query = query.order_by(QuotaAccessRecord.last_seen_at.asc())

        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerUnavailableError(f"Failed to query records: {e}", scope) from e

        return [_to_record(row) for row in rows]

    async def insert_record(self, record: AccessRecord) -> None:
        try:
            async with self.session_factory() as session:
                session.add(
                    QuotaAccessRecord(
                        id=record.id,
                        scope=record.scope,
                        subject_id=record.subject_id,
                        subject_email=record.subject_email,
                        resource_label=record.resource_label,
                        occurred_at=record.occurred_at,
                        last_seen_at=record.last_seen_at,
                        details=record.details,
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerUnavailableError(
                f"Failed to insert record: {e}", record.scope
            ) from e

    async def touch_record(
        self, scope: str, record_id: uuid.UUID, seen_at: datetime
    ) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(QuotaAccessRecord)
                    .where(
                        QuotaAccessRecord.scope == scope,
                        QuotaAccessRecord.id == record_id,
                    )
                    .values(last_seen_at=seen_at)
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise LedgerUnavailableError(f"Failed to update record: {e}", scope) from e

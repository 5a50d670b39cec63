"""In-process quota ledger storage.

Non-durable store used as the degraded-mode fallback when the database is
unreachable or not configured, and in tests. It is an approximation, not a
replica: counts kept here are never reconciled with the database.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sport_weather.quota.base import AccessRecord, LedgerBackend, SubjectKeys

logger = logging.getLogger(__name__)


class MemoryLedgerBackend(LedgerBackend):
    """Ledger storage kept in a process-local list."""

    name = "memory"

    def __init__(self) -> None:
        self._records: list[AccessRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    async def purge_before(self, scope: str, cutoff: datetime) -> int:
        kept = [
            r for r in self._records if r.scope != scope or r.last_seen_at >= cutoff
        ]
        purged = len(self._records) - len(kept)
        self._records = kept
        if purged:
            logger.debug(f"Purged {purged} expired {scope} records from memory")
        return purged

    async def find_records(
        self,
        scope: str,
        subject: SubjectKeys,
        since: datetime,
        resource_label: str | None = None,
    ) -> list[AccessRecord]:
        matches = [
            r
            for r in self._records
            if r.scope == scope
            and r.last_seen_at >= since
            and subject.matches(r)
            and (
                resource_label is None
                or (r.resource_label or "").lower() == resource_label
            )
        ]
        return sorted(matches, key=lambda r: r.last_seen_at)

    async def insert_record(self, record: AccessRecord) -> None:
        self._records.append(record)

    async def touch_record(
        self, scope: str, record_id: uuid.UUID, seen_at: datetime
    ) -> None:
        for record in self._records:
            if record.scope == scope and record.id == record_id:
                record.last_seen_at = seen_at
                return

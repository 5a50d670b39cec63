"""Sliding-window quota ledger.

The ledger answers two questions for a subject:

1. May it consume one more unit of resource R, given a cap C over period P?
2. Record that it consumed R.

Checking and recording are separate steps so callers can check before an
expensive network call and record only after that call succeeded.

## Counting modes

- **Distinct resources** (`resource_label` given): the cap bounds the number
  of different labels. Re-consuming a label already counted in the window is
  free and only refreshes its `last_seen_at`.
- **Plain counter** (`resource_label=None`): every consumption inserts a
  record and the cap bounds the total number of events.

## Expiry

Every check first deletes all records of the ledger's scope last seen before
`now - P`. The sweep covers every subject of the scope, not just the caller,
so cleanup cost is spread across requests and no background job is needed.

## Failure policy

Backend calls are bounded by `timeout_seconds`. With `fail_open=True` a
failing check is logged and reported as allowed with full capacity.
Recording never fails open: it raises `LedgerUnavailableError` so the owning
policy can fall back to another store or drop the record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from sport_weather.quota.base import (
    AccessRecord,
    LedgerBackend,
    LedgerUnavailableError,
    QuotaDecision,
    QuotaWindow,
    SubjectKeys,
    normalize_label,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def count_consumed(records: list[AccessRecord], distinct: bool) -> int:
    """Count consumed units among in-window records."""
    if not distinct:
        return len(records)
    return len({(r.resource_label or "").lower() for r in records})


class QuotaLedger:
    """Sliding-window quota ledger over a storage backend.

    Example:
        ```python
        ledger = QuotaLedger(MemoryLedgerBackend(), scope="city")
        subject = SubjectKeys.for_user(user_id, "runner@example.com")

        decision = await ledger.check_quota(subject, "Madrid", 7, timedelta(days=7))
        if decision.allowed:
            forecast = await provider.get_daily_forecast(coords)
            await ledger.record_consumption(subject, "Madrid", timedelta(days=7))
        ```
    """

    def __init__(
        self,
        backend: LedgerBackend,
        *,
        scope: str,
        fail_open: bool = True,
        timeout_seconds: float = 3.0,
        now_func: Callable[[], datetime] | None = None,
    ):
        """Initialize the ledger.

        Args:
            backend: Storage backend
            scope: Namespace isolating this ledger's records
            fail_open: Report checks as allowed when the backend fails
            timeout_seconds: Upper bound for each backend call
            now_func: Clock returning timezone-aware UTC datetimes
        """
        self.backend = backend
        self.scope = scope
        self.fail_open = fail_open
        self.timeout_seconds = timeout_seconds
        self._now_func = now_func or utc_now

    def now(self) -> datetime:
        return self._now_func()

    async def _call(self, operation: Awaitable[T]) -> T:
        """Run a backend operation with a timeout.

        Any backend error, including timeouts and unexpected exceptions, is
        converted to `LedgerUnavailableError`. Argument validation happens
        before this call and is not wrapped.
        """
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except LedgerUnavailableError:
            raise
        except asyncio.TimeoutError as e:
            raise LedgerUnavailableError(
                f"{self.backend.name} backend timed out after {self.timeout_seconds}s",
                self.scope,
            ) from e
        except (ConnectionError, OSError) as e:
            raise LedgerUnavailableError(
                f"{self.backend.name} backend unreachable: {e}", self.scope
            ) from e
        except Exception as e:
            raise LedgerUnavailableError(
                f"{self.backend.name} backend failed: {e}", self.scope
            ) from e

    @staticmethod
    def _validate(capacity: int, period: timedelta) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if period <= timedelta(0):
            raise ValueError("period must be positive")

    async def _load_window(
        self, subject: SubjectKeys, period: timedelta
    ) -> tuple[datetime, list[AccessRecord]]:
        now = self.now()
        since = now - period
        await self._call(self.backend.purge_before(self.scope, since))
        records = await self._call(self.backend.find_records(self.scope, subject, since))
        return now, records

    async def check_quota(
        self,
        subject: SubjectKeys,
        resource_label: str | None,
        capacity: int,
        period: timedelta,
    ) -> QuotaDecision:
        """Check whether `subject` may consume `resource_label`.

        Args:
            subject: Subject keys (any key match attributes a record)
            resource_label: Distinct resource, or None for a plain counter
            capacity: Maximum units per period
            period: Rolling window length

        Returns:
            QuotaDecision. Nothing is recorded.

        Raises:
            LedgerUnavailableError: If the backend fails and fail_open is False
        """
        self._validate(capacity, period)
        label = normalize_label(resource_label) if resource_label is not None else None

        try:
            _, records = await self._load_window(subject, period)
        except LedgerUnavailableError as e:
            if not self.fail_open:
                raise
            logger.warning(f"Quota check for {self.scope} failed open: {e}")
            return QuotaDecision.unlimited(capacity)

        distinct = label is not None
        count = count_consumed(records, distinct)
        reset_at = records[0].last_seen_at + period if records else None

        if distinct and any((r.resource_label or "").lower() == label for r in records):
            logger.debug(f"{self.scope} resource '{label}' already counted")
            return QuotaDecision(
                allowed=True,
                remaining=max(0, capacity - count),
                capacity=capacity,
                reset_at=reset_at,
                already_counted=True,
            )

        logger.debug(f"{self.scope} usage: {count}/{capacity}")

        if count < capacity:
            return QuotaDecision(
                allowed=True,
                remaining=capacity - count - 1,
                capacity=capacity,
                reset_at=reset_at,
            )

        return QuotaDecision(
            allowed=False,
            remaining=0,
            capacity=capacity,
            reset_at=reset_at,
        )

    async def record_consumption(
        self,
        subject: SubjectKeys,
        resource_label: str | None,
        period: timedelta,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record that `subject` consumed `resource_label`.

        Refreshes the in-window record for a labelled resource if one exists,
        inserts a new record otherwise.

        Raises:
            LedgerUnavailableError: If the backend fails
        """
        if period <= timedelta(0):
            raise ValueError("period must be positive")
        label = normalize_label(resource_label) if resource_label is not None else None

        now = self.now()
        if label is not None:
            existing = await self._call(
                self.backend.find_records(self.scope, subject, now - period, label)
            )
            if existing:
                await self._call(
                    self.backend.touch_record(self.scope, existing[0].id, now)
                )
                logger.debug(f"Refreshed {self.scope} record for '{label}'")
                return

        await self._call(
            self.backend.insert_record(
                AccessRecord(
                    scope=self.scope,
                    subject_id=subject.subject_id,
                    subject_email=subject.email,
                    resource_label=label,
                    occurred_at=now,
                    last_seen_at=now,
                    details=metadata,
                )
            )
        )
        logger.debug(f"Recorded new {self.scope} consumption")

    async def get_window(
        self,
        subject: SubjectKeys,
        capacity: int,
        period: timedelta,
        distinct: bool = True,
    ) -> QuotaWindow:
        """Summarize the subject's usage in the current window.

        Raises:
            LedgerUnavailableError: If the backend fails
        """
        self._validate(capacity, period)
        _, records = await self._load_window(subject, period)
        count = count_consumed(records, distinct)
        return QuotaWindow(
            count=count,
            capacity=capacity,
            remaining=max(0, capacity - count),
            reset_at=records[0].last_seen_at + period if records else None,
        )


class FallbackLedger:
    """Ledger that degrades to a secondary store when the primary fails.

    The primary must not fail open, otherwise its failures would never
    reach the fallback. The two stores are not synchronized; counts can
    diverge once the primary recovers mid-period.

    Example:
        ```python
        ledger = FallbackLedger(
            primary=QuotaLedger(SqlLedgerBackend(factory), scope="support", fail_open=False),
            secondary=QuotaLedger(MemoryLedgerBackend(), scope="support"),
        )
        ```
    """

    def __init__(self, primary: QuotaLedger, secondary: QuotaLedger):
        if primary.fail_open:
            raise ValueError("Primary ledger of a FallbackLedger must not fail open")
        self.primary = primary
        self.secondary = secondary

    @property
    def scope(self) -> str:
        return self.primary.scope

    def now(self) -> datetime:
        return self.primary.now()

    async def check_quota(
        self,
        subject: SubjectKeys,
        resource_label: str | None,
        capacity: int,
        period: timedelta,
    ) -> QuotaDecision:
        try:
            return await self.primary.check_quota(subject, resource_label, capacity, period)
        except LedgerUnavailableError as e:
            logger.warning(f"Primary {self.scope} ledger unavailable, using fallback: {e}")
            return await self.secondary.check_quota(
                subject, resource_label, capacity, period
            )

    async def record_consumption(
        self,
        subject: SubjectKeys,
        resource_label: str | None,
        period: timedelta,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        try:
            await self.primary.record_consumption(subject, resource_label, period, metadata)
        except LedgerUnavailableError as e:
            logger.warning(f"Primary {self.scope} ledger unavailable, recording locally: {e}")
            await self.secondary.record_consumption(
                subject, resource_label, period, metadata
            )

    async def get_window(
        self,
        subject: SubjectKeys,
        capacity: int,
        period: timedelta,
        distinct: bool = True,
    ) -> QuotaWindow:
        try:
            return await self.primary.get_window(subject, capacity, period, distinct)
        except LedgerUnavailableError as e:
            logger.warning(f"Primary {self.scope} ledger unavailable, using fallback: {e}")
            return await self.secondary.get_window(subject, capacity, period, distinct)

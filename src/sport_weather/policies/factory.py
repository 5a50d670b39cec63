"""Construction of quota policies from settings.

| Database | City policy | Support policy |
|----------|-------------|----------------|
| configured | SQL ledger, fail open | SQL ledger, falls back to local store |
| missing | unlimited | local store only |
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sport_weather.config import Settings
from sport_weather.policies.city_access import CITY_SCOPE, CityAccessPolicy
from sport_weather.policies.support_messages import SUPPORT_SCOPE, SupportMessagePolicy
from sport_weather.quota.ledger import FallbackLedger, QuotaLedger
from sport_weather.quota.memory import MemoryLedgerBackend
from sport_weather.quota.sql import SqlLedgerBackend

logger = logging.getLogger(__name__)


def build_city_policy(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None,
    now_func: Callable[[], datetime] | None = None,
) -> CityAccessPolicy:
    """Create the city access policy."""
    ledger = None
    if session_factory is not None:
        ledger = QuotaLedger(
            SqlLedgerBackend(session_factory),
            scope=CITY_SCOPE,
            fail_open=True,
            timeout_seconds=settings.quota_backend_timeout_seconds,
            now_func=now_func,
        )
    else:
        logger.warning("No database configured, city lookups will not be metered")

    return CityAccessPolicy(
        ledger,
        capacity=settings.city_quota_capacity,
        period=settings.city_quota_period,
    )


def build_support_policy(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None,
    local_backend: MemoryLedgerBackend,
    now_func: Callable[[], datetime] | None = None,
) -> SupportMessagePolicy:
    """Create the support message policy.

    Args:
        settings: Application settings
        session_factory: Database session factory, or None
        local_backend: Process-wide fallback store; must outlive the request
        now_func: Clock override
    """
    local = QuotaLedger(
        local_backend,
        scope=SUPPORT_SCOPE,
        fail_open=True,
        timeout_seconds=settings.quota_backend_timeout_seconds,
        now_func=now_func,
    )

    if session_factory is None:
        logger.warning("No database configured, support messages metered locally")
        ledger: QuotaLedger | FallbackLedger = local
    else:
        ledger = FallbackLedger(
            primary=QuotaLedger(
                SqlLedgerBackend(session_factory),
                scope=SUPPORT_SCOPE,
                fail_open=False,
                timeout_seconds=settings.quota_backend_timeout_seconds,
                now_func=now_func,
            ),
            secondary=local,
        )

    return SupportMessagePolicy(
        ledger,
        capacity=settings.support_quota_capacity,
        period=settings.support_quota_period,
    )

"""Database module for sport weather recommendations.

This module provides:
- SQLAlchemy async database connection
- User profile and quota ledger models
"""

from sport_weather.database.connection import (
    DatabaseNotConfiguredError,
    get_db_session,
    get_db,
    get_session_factory,
    init_db,
    close_db,
)
from sport_weather.database.models import (
    Base,
    User,
    QuotaAccessRecord,
)

__all__ = [
    # Connection
    "DatabaseNotConfiguredError",
    "get_db_session",
    "get_db",
    "get_session_factory",
    "init_db",
    "close_db",
    # Models
    "Base",
    "User",
    "QuotaAccessRecord",
]

"""Database module for the city journal.

This module provides:
- SQLAlchemy async database connection handle
- User and calendar document models
"""

from city_journal.database.connection import (
    Database,
    get_database,
    get_db_session,
)
from city_journal.database.models import (
    Base,
    CalendarDocumentRow,
    User,
)

__all__ = [
    # Connection
    "Database",
    "get_database",
    "get_db_session",
    # Models
    "Base",
    "CalendarDocumentRow",
    "User",
]

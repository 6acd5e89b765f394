"""Database session and repository utilities."""

from rental_sync.db.session import (
    dispose_engines,
    get_engine,
    get_read_session,
    get_sessionmaker,
    session_context,
)
from rental_sync.db.repositories import (
    PersistenceError,
    RentalRecord,
    count_rentals,
    fetch_latest_ingestion_date,
    fetch_rentals,
    fetch_rentals_summary,
    persist_properties,
    upsert_rentals,
)

__all__ = [
    "dispose_engines",
    "get_engine",
    "get_read_session",
    "get_sessionmaker",
    "session_context",
    "PersistenceError",
    "RentalRecord",
    "count_rentals",
    "fetch_latest_ingestion_date",
    "fetch_rentals",
    "fetch_rentals_summary",
    "persist_properties",
    "upsert_rentals",
]

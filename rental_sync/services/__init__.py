"""Service layer."""

from rental_sync.services.rental_service import RentalService
from rental_sync.services.sync_service import SyncResult, SyncService

__all__ = ["RentalService", "SyncResult", "SyncService"]

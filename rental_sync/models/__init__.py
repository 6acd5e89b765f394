"""SQLAlchemy ORM models."""

from rental_sync.models.base import Base
from rental_sync.models.rental import Rental

__all__ = ["Base", "Rental"]

"""Rental listing table model."""

from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from rental_sync.models.base import Base

TABLE_NAME = "nashville_rentals"


class Rental(Base):
    """Rental listing fetched from the Zillow search API."""

    __tablename__ = TABLE_NAME
    __table_args__ = (
        UniqueConstraint("detail_url", name="uq_rentals_detail_url"),
        Index("idx_rentals_ingestion_date", "ingestion_date"),
        Index("idx_rentals_price", "price"),
        Index("idx_rentals_property_type", "property_type"),
    )

    # Uppercase SHA-256 of detail_url.
    record_id: Mapped[str] = mapped_column(Text, primary_key=True)
    detail_url: Mapped[str] = mapped_column(Text, nullable=False)
    longitude: Mapped[float | None] = mapped_column(
        Numeric(10, 6, asdecimal=False), nullable=True
    )
    latitude: Mapped[float | None] = mapped_column(
        Numeric(10, 6, asdecimal=False), nullable=True
    )
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Monthly rent in cents.
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bedrooms: Mapped[float | None] = mapped_column(
        Numeric(4, 1, asdecimal=False), nullable=True
    )
    bathrooms: Mapped[float | None] = mapped_column(
        Numeric(4, 1, asdecimal=False), nullable=True
    )
    living_area: Mapped[float | None] = mapped_column(
        Numeric(10, 2, asdecimal=False), nullable=True
    )
    property_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    units: Mapped[list[dict[str, float]] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=True
    )
    ingestion_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

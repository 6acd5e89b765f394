"""Business logic for rental searches."""

from sqlalchemy.ext.asyncio import AsyncSession

from rental_sync.db.repositories import (
    fetch_rentals,
    fetch_rentals_summary,
    from_minor_units,
    to_minor_units,
)


class RentalService:
    """Service layer for the rentals read endpoints."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def search_rentals(
        self,
        *,
        min_price: float | None = None,
        max_price: float | None = None,
        search: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, object]]:
        """Search rentals; prices in and out are dollars."""

        rows = await fetch_rentals(
            self._session,
            min_price=to_minor_units(min_price),
            max_price=to_minor_units(max_price),
            search=search,
            limit=limit,
            offset=offset,
        )

        return [
            {
                "record_id": row.record_id,
                "detail_url": row.detail_url,
                "longitude": row.longitude,
                "latitude": row.latitude,
                "address": row.address,
                "price": from_minor_units(row.price),
                "bedrooms": row.bedrooms,
                "bathrooms": row.bathrooms,
                "living_area": row.living_area,
                "property_type": row.property_type,
                "units": row.units,
                "ingestion_date": row.ingestion_date.isoformat()
                if row.ingestion_date
                else None,
                "created_at": row.created_at.isoformat() if row.created_at else None,
                "updated_at": row.updated_at.isoformat() if row.updated_at else None,
            }
            for row in rows
        ]

    async def get_summary(self) -> dict[str, object]:
        """Return summary statistics with prices in dollars."""

        summary = await fetch_rentals_summary(self._session)
        avg_price = (
            round(summary.avg_price_cents / 100, 2)
            if summary.avg_price_cents is not None
            else None
        )
        return {
            "total_rentals": summary.total_rentals,
            "avg_price": avg_price,
            "min_price": from_minor_units(summary.min_price_cents),
            "max_price": from_minor_units(summary.max_price_cents),
            "property_types_count": summary.property_types_count,
            "latest_ingestion_date": summary.latest_ingestion_date.isoformat()
            if summary.latest_ingestion_date
            else None,
        }

"""Repository helpers for rental listing persistence and queries."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_sync.crawlers.schemas import ZillowProperty
from rental_sync.models.rental import Rental

# asyncpg caps a statement at 32767 bind parameters; 12 columns per row.
UPSERT_CHUNK_SIZE = 1000


class PersistenceError(RuntimeError):
    """Raised when the store rejects a write."""


@dataclass(slots=True)
class RentalRecord:
    """Payload used to insert/update rental rows."""

    record_id: str
    detail_url: str
    longitude: float | None
    latitude: float | None
    address: str | None
    price: int | None
    bedrooms: float | None
    bathrooms: float | None
    living_area: float | None
    property_type: str | None
    units: list[dict[str, float]] | None
    ingestion_date: date


@dataclass(slots=True)
class RentalsSummary:
    """Aggregate statistics over priced rentals."""

    total_rentals: int
    avg_price_cents: float | None
    min_price_cents: int | None
    max_price_cents: int | None
    property_types_count: int
    latest_ingestion_date: date | None


def generate_record_id(detail_url: str) -> str:
    """Return the uppercase SHA-256 hex digest identifying a listing."""

    return hashlib.sha256((detail_url or "").encode("utf-8")).hexdigest().upper()


def to_minor_units(price: float | int | Decimal | None) -> int | None:
    """Convert dollars to cents, rounding half away from zero."""

    if price is None:
        return None
    cents = Decimal(str(price)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(cents: int | None) -> float | None:
    if cents is None:
        return None
    return cents / 100


def property_to_record(prop: ZillowProperty, ingestion_date: date) -> RentalRecord:
    """Map a validated property onto its storage payload."""

    units = (
        [unit.model_dump(exclude_none=True) for unit in prop.units]
        if prop.units is not None
        else None
    )
    return RentalRecord(
        record_id=generate_record_id(prop.detail_url),
        detail_url=prop.detail_url,
        longitude=prop.longitude,
        latitude=prop.latitude,
        address=prop.address,
        price=to_minor_units(prop.price),
        bedrooms=prop.bedrooms,
        bathrooms=prop.bathrooms,
        living_area=prop.living_area,
        property_type=prop.property_type,
        units=units,
        ingestion_date=ingestion_date,
    )


def deduplicate_by_detail_url(records: Iterable[RentalRecord]) -> list[RentalRecord]:
    """Keep one record per detail URL; the last occurrence wins.

    Output follows the order in which each URL was first seen.
    """

    seen: dict[str, RentalRecord] = {}
    for record in records:
        seen[record.detail_url] = record
    return list(seen.values())


async def upsert_rentals(session: AsyncSession, rows: Sequence[RentalRecord]) -> int:
    """Insert or update rental rows keyed on detail_url."""

    if not rows:
        return 0

    rows = deduplicate_by_detail_url(rows)
    values = [asdict(row) for row in rows]
    dialect_name = session.get_bind().dialect.name

    if dialect_name == "postgresql":
        affected_ids: list[str] = []
        for start in range(0, len(values), UPSERT_CHUNK_SIZE):
            stmt = pg_insert(Rental).values(values[start : start + UPSERT_CHUNK_SIZE])
            stmt = stmt.on_conflict_do_update(
                index_elements=[Rental.detail_url],
                set_={
                    "record_id": stmt.excluded.record_id,
                    "longitude": stmt.excluded.longitude,
                    "latitude": stmt.excluded.latitude,
                    "address": stmt.excluded.address,
                    "price": stmt.excluded.price,
                    "bedrooms": stmt.excluded.bedrooms,
                    "bathrooms": stmt.excluded.bathrooms,
                    "living_area": stmt.excluded.living_area,
                    "property_type": stmt.excluded.property_type,
                    "units": stmt.excluded.units,
                    "ingestion_date": stmt.excluded.ingestion_date,
                    "updated_at": func.now(),
                },
            ).returning(Rental.record_id)
            result = await session.execute(stmt)
            affected_ids.extend(result.scalars().all())
        await session.commit()
        return len(affected_ids) or len(rows)

    affected = 0
    for row in rows:
        exists_stmt = select(Rental.record_id).where(
            Rental.detail_url == row.detail_url
        )
        existing = (await session.execute(exists_stmt)).scalar_one_or_none()

        if existing is None:
            session.add(Rental(**asdict(row)))
        else:
            payload = asdict(row)
            payload.pop("detail_url")
            stmt = (
                update(Rental)
                .where(Rental.detail_url == row.detail_url)
                .values(**payload)
            )
            await session.execute(stmt)
        affected += 1

    await session.commit()
    return affected


async def persist_properties(
    session: AsyncSession,
    properties: Sequence[ZillowProperty],
    ingestion_date: date | None = None,
) -> int:
    """Store validated properties, returning the number of rows written.

    Raises PersistenceError when the database rejects the batch; nothing
    is retried.
    """

    if not properties:
        return 0

    ingestion_date = ingestion_date or datetime.now(UTC).date()
    records = [property_to_record(prop, ingestion_date) for prop in properties]
    unique_records = deduplicate_by_detail_url(records)

    try:
        return await upsert_rentals(session, unique_records)
    except SQLAlchemyError as exc:
        await session.rollback()
        raise PersistenceError(f"Failed to persist properties: {exc}") from exc


async def count_rentals(session: AsyncSession) -> int:
    """Return the number of stored rentals."""

    stmt = select(func.count()).select_from(Rental)
    return (await session.execute(stmt)).scalar_one_or_none() or 0


async def fetch_latest_ingestion_date(session: AsyncSession) -> date | None:
    """Return the most recent ingestion date, or None for an empty table."""

    stmt = select(func.max(Rental.ingestion_date))
    return (await session.execute(stmt)).scalar_one_or_none()


async def fetch_rentals(
    session: AsyncSession,
    *,
    min_price: int | None = None,
    max_price: int | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Rental]:
    """Fetch rentals newest-first. Price bounds are in cents."""

    stmt = select(Rental).order_by(
        Rental.ingestion_date.desc(), Rental.record_id.desc()
    )

    if min_price is not None:
        stmt = stmt.where(Rental.price >= min_price)

    if max_price is not None:
        stmt = stmt.where(Rental.price <= max_price)

    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(Rental.address.ilike(pattern), Rental.detail_url.ilike(pattern))
        )

    stmt = stmt.offset(max(0, offset)).limit(max(0, limit))

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def fetch_rentals_summary(session: AsyncSession) -> RentalsSummary:
    """Summarize priced rentals for the dashboard."""

    stmt = select(
        func.count(Rental.record_id),
        func.avg(Rental.price),
        func.min(Rental.price),
        func.max(Rental.price),
        func.count(func.distinct(Rental.property_type)),
        func.max(Rental.ingestion_date),
    ).where(Rental.price.is_not(None))

    row = (await session.execute(stmt)).first()
    if row is None:
        return RentalsSummary(0, None, None, None, 0, None)

    return RentalsSummary(
        total_rentals=int(row[0] or 0),
        avg_price_cents=float(row[1]) if row[1] is not None else None,
        min_price_cents=int(row[2]) if row[2] is not None else None,
        max_price_cents=int(row[3]) if row[3] is not None else None,
        property_types_count=int(row[4] or 0),
        latest_ingestion_date=row[5],
    )

# ruff: noqa: E402

from __future__ import annotations

import argparse
import asyncio
import logging
import sqlite3
import sys
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy.exc import SQLAlchemyError

from rental_sync.db.repositories import (
    RentalRecord,
    count_rentals,
    generate_record_id,
    to_minor_units,
    upsert_rentals,
)
from rental_sync.db.session import dispose_engines, session_context

logger = logging.getLogger("migrate_sqlite_rentals")

DEFAULT_SQLITE_PATH = ROOT_DIR.parent / "TESTRENT01.db"
TABLE_NAME_MARKER = "Nashville"


@dataclass(frozen=True)
class CliArgs:
    sqlite_path: Path = DEFAULT_SQLITE_PATH
    batch_size: int = 100


@dataclass(slots=True)
class MigrationReport:
    source_rows: int
    migrated: int
    failed_batches: int
    store_count: int | None


def _parse_args() -> CliArgs:
    parser = argparse.ArgumentParser(
        description="Copy legacy SQLite rentals into the Postgres nashville_rentals table."
    )
    parser.add_argument(
        "--sqlite-path",
        default=str(DEFAULT_SQLITE_PATH),
        help=f"Path to the legacy SQLite database (default: {DEFAULT_SQLITE_PATH}).",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=100,
        help="Rows per upsert batch (default: 100).",
    )

    parsed = parser.parse_args()
    return CliArgs(
        sqlite_path=Path(parsed.sqlite_path),
        batch_size=max(1, int(parsed.batch_size)),
    )


def _parse_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_date(value: Any) -> date:
    if value:
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            logger.warning("Unparseable INGESTION_DATE %r, using today", value)
    return datetime.now(UTC).date()


def convert_row(row: dict[str, Any]) -> RentalRecord:
    """Map a legacy uppercase TEXT row onto a storage record."""

    detail_url = str(row["DETAILURL"])
    return RentalRecord(
        record_id=row.get("RECORD_ID") or generate_record_id(detail_url),
        detail_url=detail_url,
        longitude=_parse_number(row.get("LONGITUDE")),
        latitude=_parse_number(row.get("LATITUDE")),
        address=row.get("ADDRESS") or None,
        price=to_minor_units(_parse_number(row.get("PRICE"))),
        bedrooms=_parse_number(row.get("BEDROOMS")),
        bathrooms=_parse_number(row.get("BATHROOMS")),
        living_area=_parse_number(row.get("LIVINGAREA")),
        property_type=row.get("PROPERTYTYPE") or None,
        units=None,
        ingestion_date=_parse_date(row.get("INGESTION_DATE")),
    )


def read_sqlite_rows(sqlite_path: Path) -> list[dict[str, Any]]:
    """Read every row of the first table whose name mentions Nashville."""

    connection = sqlite3.connect(sqlite_path)
    connection.row_factory = sqlite3.Row
    try:
        tables = [
            str(row["name"])
            for row in connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
        ]
        logger.info("Found tables: %s", ", ".join(tables))

        table_name = next((name for name in tables if TABLE_NAME_MARKER in name), None)
        if table_name is None:
            raise LookupError("Nashville rentals table not found")

        logger.info("Using table: %s", table_name)
        cursor = connection.execute(f'SELECT * FROM "{table_name}"')
        return [dict(row) for row in cursor.fetchall()]
    finally:
        connection.close()


async def migrate(args: CliArgs) -> MigrationReport:
    rows = read_sqlite_rows(args.sqlite_path)
    logger.info("Total rows to migrate: %s", len(rows))

    records = [convert_row(row) for row in rows if row.get("DETAILURL")]
    total_batches = (len(records) + args.batch_size - 1) // args.batch_size
    migrated = 0
    failed_batches = 0

    for batch_index, start in enumerate(range(0, len(records), args.batch_size), 1):
        batch = records[start : start + args.batch_size]
        logger.info(
            "Batch %s/%s: migrating %s records...", batch_index, total_batches, len(batch)
        )
        try:
            async with session_context() as session:
                await upsert_rentals(session, batch)
        except SQLAlchemyError as exc:
            failed_batches += 1
            logger.warning("Error in batch %s: %s", batch_index, exc)
            continue
        migrated += len(batch)

    store_count: int | None
    try:
        async with session_context() as session:
            store_count = await count_rentals(session)
    except SQLAlchemyError as exc:
        logger.warning("Verification failed: %s", exc)
        store_count = None

    return MigrationReport(
        source_rows=len(rows),
        migrated=migrated,
        failed_batches=failed_batches,
        store_count=store_count,
    )


async def _main(args: CliArgs) -> int:
    try:
        report = await migrate(args)
    finally:
        await dispose_engines()

    logger.info("SQLite rows:       %s", report.source_rows)
    logger.info("Records migrated:  %s", report.migrated)
    logger.info("Store count:       %s", report.store_count)

    if report.store_count == report.source_rows:
        logger.info("Migration completed successfully")
        return 0
    logger.warning("Row count mismatch - please verify the data")
    return 1


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _parse_args()
    if not args.sqlite_path.exists():
        logger.error("SQLite database not found: %s", args.sqlite_path)
        return 1
    return asyncio.run(_main(args))


if __name__ == "__main__":
    raise SystemExit(main())

"""Batch sync pipeline: fetch every configured location, then persist."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from rental_sync.config import Settings, get_settings
from rental_sync.crawlers.errors import AuthenticationError
from rental_sync.crawlers.schemas import ZillowProperty
from rental_sync.crawlers.zillow import ZillowFetcher
from rental_sync.db.repositories import persist_properties
from rental_sync.db.session import session_context

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncResult:
    """Outcome of one sync run."""

    collected: int
    persisted: int
    ingestion_date: date
    errors: list[str] = field(default_factory=list)


def chunk_locations(locations: Sequence[str], size: int) -> list[list[str]]:
    size = max(1, size)
    return [list(locations[i : i + size]) for i in range(0, len(locations), size)]


async def _persist(properties: list[ZillowProperty], ingestion_date: date) -> int:
    async with session_context() as session:
        return await persist_properties(session, properties, ingestion_date)


class SyncService:
    """Run the fetch pipeline across all locations in fixed-size batches."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        fetcher: ZillowFetcher | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._fetcher = fetcher

    async def collect(self) -> tuple[list[ZillowProperty], list[str]]:
        """Collect properties batch by batch.

        A failing batch is logged and skipped, except for authentication
        failures, which abort the run.
        """

        settings = self._settings
        batches = chunk_locations(settings.search_locations, settings.locations_per_batch)
        properties: list[ZillowProperty] = []
        errors: list[str] = []

        fetcher = self._fetcher or ZillowFetcher(settings)
        try:
            for index, batch in enumerate(batches, start=1):
                logger.info("Processing batch %s: %s", index, ", ".join(batch))
                try:
                    batch_properties = await fetcher.collect_properties(
                        settings.search_base_params(),
                        batch,
                        max_pages=settings.max_pages,
                        rate_limit_wait=settings.rate_limit_wait_seconds,
                    )
                    properties.extend(batch_properties)
                    logger.info("Batch collected %s properties", len(batch_properties))
                except AuthenticationError:
                    raise
                except Exception as e:
                    error_msg = f"Error processing batch {index}: {e}"
                    logger.warning(error_msg)
                    errors.append(error_msg)

                if index < len(batches):
                    logger.info(
                        "Waiting %ss before next batch...",
                        settings.rate_limit_wait_seconds,
                    )
                    await asyncio.sleep(settings.rate_limit_wait_seconds)
        finally:
            if self._fetcher is None:
                await fetcher.aclose()

        return properties, errors

    async def run(self) -> SyncResult:
        """Collect every location and persist the result under today's date."""

        properties, errors = await self.collect()
        ingestion_date = datetime.now(UTC).date()
        persisted = await _persist(properties, ingestion_date)

        logger.info(
            "Sync complete: %s properties collected, %s persisted",
            len(properties),
            persisted,
        )
        if errors:
            logger.warning(
                "Sync finished with %s failed batch(es): %s",
                len(errors),
                "; ".join(errors),
            )
        return SyncResult(
            collected=len(properties),
            persisted=persisted,
            ingestion_date=ingestion_date,
            errors=errors,
        )

"""JSON API routes for rentals, manual sync, and the daily cron trigger."""

import logging
import secrets

import httpx
from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_sync.config import Settings, get_settings
from rental_sync.db.session import get_read_session
from rental_sync.services.rental_service import RentalService
from rental_sync.services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rentals"])


def _error_message(exc: BaseException) -> str:
    return str(exc) or "Unknown error occurred"


def _build_sync_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client used by the cron endpoint to call this app's /sync."""

    return httpx.AsyncClient(base_url=settings.app_url, timeout=httpx.Timeout(None))


@router.get("/rentals")
async def list_rentals(
    session: AsyncSession = Depends(get_read_session),
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    search: str | None = None,
    limit: int = Query(default=100, ge=0),
    offset: int = Query(default=0, ge=0),
) -> JSONResponse:
    """List rentals with optional price (dollars) and text filters."""

    service = RentalService(session)
    try:
        rentals = await service.search_rentals(
            min_price=min_price,
            max_price=max_price,
            search=search or None,
            limit=limit,
            offset=offset,
        )
    except SQLAlchemyError as exc:
        logger.warning("Database error while listing rentals: %s", exc)
        return JSONResponse(
            {"error": "Failed to fetch rentals", "details": _error_message(exc)},
            status_code=500,
        )

    return JSONResponse({"data": rentals, "count": len(rentals)})


@router.get("/rentals/summary")
async def rentals_summary(
    session: AsyncSession = Depends(get_read_session),
) -> JSONResponse:
    """Aggregate price statistics and the latest ingestion date."""

    service = RentalService(session)
    try:
        summary = await service.get_summary()
    except SQLAlchemyError as exc:
        logger.warning("Database error while summarizing rentals: %s", exc)
        return JSONResponse(
            {"error": "Failed to fetch summary", "details": _error_message(exc)},
            status_code=500,
        )
    return JSONResponse(summary)


@router.post("/sync")
async def trigger_sync(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """Fetch every configured location and persist the results."""

    try:
        result = await SyncService(settings).run()
    except Exception as exc:
        logger.exception("Sync failed")
        return JSONResponse(
            {"success": False, "error": _error_message(exc)}, status_code=500
        )

    return JSONResponse(
        {
            "success": True,
            "message": "Sync completed successfully",
            "collected": result.collected,
            "persisted": result.persisted,
            "ingestionDate": result.ingestion_date.isoformat(),
        }
    )


@router.get("/cron/daily-fetch")
async def daily_fetch(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """Cron entrypoint: authenticate, then relay a POST to /sync."""

    expected = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not secrets.compare_digest(
        (authorization or "").encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Unauthorized cron attempt")
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        logger.info("Triggering daily sync: %s/sync", settings.app_url.rstrip("/"))
        async with _build_sync_client(settings) as client:
            response = await client.post(
                "/sync", headers={"Content-Type": "application/json"}
            )
        result = response.json()

        if not response.is_success:
            logger.warning("Sync failed: %s", result)
            return JSONResponse(
                {
                    "success": False,
                    "error": "Sync endpoint failed",
                    "details": result,
                },
                status_code=500,
            )

        logger.info("Daily sync completed: %s", result)
        return JSONResponse(
            {
                "success": True,
                "message": "Daily fetch completed",
                "syncResult": result,
            }
        )
    except Exception as exc:
        logger.exception("Cron job failed")
        return JSONResponse(
            {"success": False, "error": _error_message(exc)}, status_code=500
        )

"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rental_sync.api.router import router
from rental_sync.config import get_settings
from rental_sync.db.session import dispose_engines


def _configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Dispose pooled database connections on shutdown."""

    _configure_logging()
    yield
    await dispose_engines()


app = FastAPI(title="rental-sync", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Basic health endpoint."""

    return {"status": "ok"}

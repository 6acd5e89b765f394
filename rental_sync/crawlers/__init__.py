"""Zillow search client and record normalization."""

from rental_sync.crawlers.errors import (
    AuthenticationError,
    MissingApiKeyError,
    NotFoundError,
    RateLimitError,
    ZillowAPIError,
)
from rental_sync.crawlers.schemas import ZillowProperty, ZillowUnit
from rental_sync.crawlers.zillow import ZillowFetcher

__all__ = [
    "AuthenticationError",
    "MissingApiKeyError",
    "NotFoundError",
    "RateLimitError",
    "ZillowAPIError",
    "ZillowFetcher",
    "ZillowProperty",
    "ZillowUnit",
]

"""Zillow RapidAPI search client."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import AsyncIterator, Sequence
from typing import Any, Final

import httpx

from rental_sync.config import Settings, get_settings
from rental_sync.crawlers.errors import (
    AuthenticationError,
    MissingApiKeyError,
    NotFoundError,
    RateLimitError,
    ZillowAPIError,
)
from rental_sync.crawlers.normalize import records_to_properties
from rental_sync.crawlers.schemas import ZillowProperty

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES: Final = frozenset({401, 403})


def safe_page_number(page: object) -> int:
    """Clamp a requested page to a positive integer."""

    try:
        number = float(page)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 1
    if math.isnan(number) or math.isinf(number):
        return 1
    return max(1, math.floor(number))


def extract_results(payload: Any) -> list[Any]:
    """Return the listing array from the search payload shapes we have seen."""

    if not payload:
        return []
    if isinstance(payload, dict):
        results = payload.get("results")
        if isinstance(results, list):
            return results
        props = payload.get("props")
        if isinstance(props, list):
            return props
        return []
    if isinstance(payload, list):
        return payload
    return []


def _response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ZillowFetcher:
    """Paginated client for the Zillow ``propertyExtendedSearch`` endpoint."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_key = api_key or self._settings.zillow_api_key
        if not self._api_key:
            raise MissingApiKeyError(
                "Missing Zillow API key. Set ZILLOW_RAPIDAPI_KEY or RAPIDAPI_KEY "
                "environment variable."
            )

        self._endpoint = self._settings.zillow_api_endpoint
        self._retries = self._settings.fetch_retries
        self._cooldown = self._settings.fetch_cooldown_seconds
        self._client = httpx.AsyncClient(
            base_url=self._settings.zillow_api_base_url,
            headers={
                "x-rapidapi-key": self._api_key,
                "x-rapidapi-host": self._settings.zillow_api_host,
            },
            timeout=httpx.Timeout(self._settings.zillow_request_timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> ZillowFetcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_page(
        self,
        params: dict[str, Any],
        page: object = 1,
        retries: int | None = None,
        cooldown: float | None = None,
    ) -> Any:
        """Fetch one search page with retry and linear backoff.

        A 404 is reported as an empty page. 401/403 fail immediately.
        429 and every other failure wait ``cooldown * attempt`` seconds
        between attempts and raise once ``retries`` attempts are used up.
        """

        retries = self._retries if retries is None else retries
        cooldown = self._cooldown if cooldown is None else cooldown
        request_params = {**params, "page": safe_page_number(page)}

        for attempt in range(1, retries + 1):
            try:
                response = await self._client.get(self._endpoint, params=request_params)
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                payload = _response_payload(e.response)

                if status_code == 404:
                    return {"results": []}

                if status_code in AUTH_STATUS_CODES:
                    message = ZillowAPIError.extract_error_message(payload)
                    raise AuthenticationError(
                        f"Authentication failed: {message}. "
                        "Please check your ZILLOW_RAPIDAPI_KEY.",
                        payload,
                    ) from e

                if status_code == 429:
                    if attempt < retries:
                        wait_seconds = cooldown * attempt
                        logger.warning(
                            "Rate limit hit. Retrying in %ss... (attempt %s/%s)",
                            wait_seconds,
                            attempt,
                            retries,
                        )
                        await asyncio.sleep(wait_seconds)
                        continue
                    raise RateLimitError(
                        f"Rate limit exceeded after {retries} attempts", payload
                    ) from e

                if attempt < retries:
                    await self._wait_before_retry(str(e), cooldown, attempt, retries)
                    continue

                message = ZillowAPIError.extract_error_message(payload)
                raise ZillowAPIError(
                    f"Failed after {retries} attempts: {message}",
                    status_code,
                    payload,
                ) from e

            except httpx.TransportError as e:
                if attempt < retries:
                    await self._wait_before_retry(str(e), cooldown, attempt, retries)
                    continue
                raise ZillowAPIError(
                    f"Failed after {retries} attempts: {e}"
                ) from e

            except ValueError as e:
                # 2xx with a body that is not JSON (gateway error pages).
                if attempt < retries:
                    await self._wait_before_retry(
                        "invalid JSON body", cooldown, attempt, retries
                    )
                    continue
                raise ZillowAPIError(
                    f"Failed after {retries} attempts: invalid JSON body",
                    response.status_code,
                    response.text,
                ) from e

        return None

    async def _wait_before_retry(
        self, reason: str, cooldown: float, attempt: int, retries: int
    ) -> None:
        wait_seconds = cooldown * attempt
        logger.warning(
            "Request failed: %s. Retrying in %ss... (attempt %s/%s)",
            reason,
            wait_seconds,
            attempt,
            retries,
        )
        await asyncio.sleep(wait_seconds)

    async def iterate_pages(
        self,
        params: dict[str, Any],
        max_pages: int | None = None,
        rate_limit_wait: float | None = None,
    ) -> AsyncIterator[list[Any]]:
        """Yield result batches page by page until the search is exhausted."""

        max_pages = self._settings.max_pages if max_pages is None else max_pages
        rate_limit_wait = (
            self._settings.rate_limit_wait_seconds
            if rate_limit_wait is None
            else rate_limit_wait
        )

        for page in range(1, max_pages + 1):
            payload = await self.fetch_page(params, page)
            if payload is None:
                break

            results = extract_results(payload)
            if not results:
                break

            yield results

            if page < max_pages:
                await asyncio.sleep(rate_limit_wait)

            total_pages = (
                payload.get("totalPages") if isinstance(payload, dict) else None
            )
            if isinstance(total_pages, (int, float)) and 0 < total_pages <= page:
                break

    async def collect_properties(
        self,
        base_params: dict[str, Any],
        locations: Sequence[str],
        max_pages: int | None = None,
        rate_limit_wait: float | None = None,
    ) -> list[ZillowProperty]:
        """Fetch every page for each location and validate the combined records."""

        all_records: list[Any] = []

        for location in locations:
            params = {**base_params, "location": location}
            logger.info("Fetching properties for %s...", location)

            try:
                async for page_results in self.iterate_pages(
                    params, max_pages, rate_limit_wait
                ):
                    all_records.extend(page_results)
                    logger.info(
                        "  Found %s properties (total: %s)",
                        len(page_results),
                        len(all_records),
                    )
            except NotFoundError:
                logger.warning("No properties found for %s", location)
                continue

        properties = records_to_properties(all_records)
        logger.info("Total properties collected: %s", len(properties))
        return properties

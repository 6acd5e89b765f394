from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

import pytest

from rental_sync.config import Settings
from rental_sync.crawlers.errors import AuthenticationError, RateLimitError
from rental_sync.crawlers.schemas import ZillowProperty
from rental_sync.services import sync_service
from rental_sync.services.sync_service import SyncService, chunk_locations

pytestmark = pytest.mark.anyio


class FakeFetcher:
    def __init__(self, failures: dict[str, Exception] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def collect_properties(
        self,
        base_params: dict[str, Any],
        locations: Sequence[str],
        max_pages: int | None = None,
        rate_limit_wait: float | None = None,
    ) -> list[ZillowProperty]:
        self.calls.append(
            {
                "base_params": base_params,
                "locations": list(locations),
                "max_pages": max_pages,
                "rate_limit_wait": rate_limit_wait,
            }
        )
        for location in locations:
            if location in self.failures:
                raise self.failures[location]
        return [
            ZillowProperty.model_validate(
                {"detailUrl": f"https://z/{location}", "price": 2000}
            )
            for location in locations
        ]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    recorded: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        recorded.append(seconds)

    monkeypatch.setattr("rental_sync.services.sync_service.asyncio.sleep", fake_sleep)
    return recorded


def _settings(settings: Settings, **overrides: Any) -> Settings:
    return settings.model_copy(update=overrides)


async def test_chunk_locations() -> None:
    assert chunk_locations(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]
    assert chunk_locations([], 5) == []
    assert chunk_locations(["a", "b"], 0) == [["a"], ["b"]]


async def test_collect_batches_locations_and_waits_between_batches(
    settings: Settings, sleeps: list[float]
) -> None:
    cfg = _settings(
        settings,
        search_locations=["l1", "l2", "l3", "l4", "l5", "l6", "l7"],
        locations_per_batch=3,
        rate_limit_wait_seconds=5,
    )
    fetcher = FakeFetcher()

    properties, errors = await SyncService(cfg, fetcher=fetcher).collect()

    assert [call["locations"] for call in fetcher.calls] == [
        ["l1", "l2", "l3"],
        ["l4", "l5", "l6"],
        ["l7"],
    ]
    assert fetcher.calls[0]["base_params"] == cfg.search_base_params()
    assert fetcher.calls[0]["max_pages"] == cfg.max_pages
    assert len(properties) == 7
    assert errors == []
    assert sleeps == [5, 5]
    assert fetcher.closed is False


async def test_collect_skips_failing_batch(
    settings: Settings, sleeps: list[float]
) -> None:
    cfg = _settings(settings, search_locations=["l1", "l2", "l3"], locations_per_batch=1)
    fetcher = FakeFetcher(
        failures={"l2": RateLimitError("Rate limit exceeded after 4 attempts")}
    )

    properties, errors = await SyncService(cfg, fetcher=fetcher).collect()

    assert [prop.detail_url for prop in properties] == ["https://z/l1", "https://z/l3"]
    assert errors == ["Error processing batch 2: Rate limit exceeded after 4 attempts"]
    assert len(fetcher.calls) == 3


async def test_collect_aborts_on_authentication_error(
    settings: Settings, sleeps: list[float]
) -> None:
    cfg = _settings(settings, search_locations=["l1", "l2"], locations_per_batch=1)
    fetcher = FakeFetcher(failures={"l1": AuthenticationError("bad key")})

    with pytest.raises(AuthenticationError):
        await SyncService(cfg, fetcher=fetcher).collect()

    assert len(fetcher.calls) == 1


async def test_run_persists_with_todays_date(
    settings: Settings, sleeps: list[float], monkeypatch: pytest.MonkeyPatch
) -> None:
    persisted: dict[str, Any] = {}

    async def fake_persist(properties: list[ZillowProperty], ingestion_date: date) -> int:
        persisted["urls"] = [prop.detail_url for prop in properties]
        persisted["ingestion_date"] = ingestion_date
        return len(properties)

    monkeypatch.setattr(sync_service, "_persist", fake_persist)

    result = await SyncService(settings, fetcher=FakeFetcher()).run()

    assert result.collected == 2
    assert result.persisted == 2
    assert result.errors == []
    assert result.ingestion_date == datetime.now(UTC).date()
    assert persisted["urls"] == [
        "https://z/37206, Nashville, TN",
        "https://z/37216, Nashville, TN",
    ]
    assert persisted["ingestion_date"] == result.ingestion_date


async def test_run_persists_even_when_nothing_collected(
    settings: Settings,
    sleeps: list[float],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def fake_persist(properties: list[ZillowProperty], ingestion_date: date) -> int:
        return len(properties)

    monkeypatch.setattr(sync_service, "_persist", fake_persist)
    fetcher = FakeFetcher(
        failures={"37206, Nashville, TN": RuntimeError("network down")}
    )

    caplog.set_level("WARNING", logger="rental_sync.services.sync_service")

    result = await SyncService(settings, fetcher=fetcher).run()

    assert result.collected == 0
    assert result.persisted == 0
    assert result.errors == ["Error processing batch 1: network down"]
    assert (
        "Sync finished with 1 failed batch(es): Error processing batch 1: network down"
        in caplog.text
    )

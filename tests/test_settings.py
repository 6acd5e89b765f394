import pytest

from rental_sync.config.settings import DEFAULT_SEARCH_LOCATIONS, Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "ZILLOW_API_KEY",
        "ZILLOW_RAPIDAPI_KEY",
        "RAPIDAPI_KEY",
        "SEARCH_LOCATIONS",
        "DATABASE_URL",
        "DATABASE_READ_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_api_key_prefers_zillow_rapidapi_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZILLOW_RAPIDAPI_KEY", "primary")
    monkeypatch.setenv("RAPIDAPI_KEY", "fallback")

    assert Settings().zillow_api_key == "primary"


def test_api_key_falls_back_to_rapidapi_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RAPIDAPI_KEY", "fallback")

    assert Settings().zillow_api_key == "fallback"


def test_api_key_defaults_to_empty() -> None:
    assert Settings().zillow_api_key == ""


def test_search_locations_from_semicolon_separated_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv(
        "SEARCH_LOCATIONS", "37206, Nashville, TN; 37216, Nashville, TN ;"
    )

    assert Settings().search_locations == [
        "37206, Nashville, TN",
        "37216, Nashville, TN",
    ]


def test_search_locations_from_json_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCH_LOCATIONS", '["37209, Nashville, TN"]')

    assert Settings().search_locations == ["37209, Nashville, TN"]


def test_search_locations_default() -> None:
    settings = Settings()

    assert settings.search_locations == list(DEFAULT_SEARCH_LOCATIONS)
    assert len(settings.search_locations) == 12


def test_read_url_falls_back_to_write_url() -> None:
    settings = Settings(database_url="postgresql+asyncpg://writer@db/rentals")
    assert settings.effective_read_url == "postgresql+asyncpg://writer@db/rentals"

    settings = Settings(
        database_url="postgresql+asyncpg://writer@db/rentals",
        database_read_url="postgresql+asyncpg://reader@db/rentals",
    )
    assert settings.effective_read_url == "postgresql+asyncpg://reader@db/rentals"


def test_search_base_params() -> None:
    assert Settings().search_base_params() == {
        "status_type": "ForRent",
        "rentMinPrice": 1600,
        "rentMaxPrice": 3300,
        "bedsMin": 1,
        "bedsMax": 4,
        "sqftMin": 700,
        "sqftMax": 3500,
    }

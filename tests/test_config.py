from __future__ import annotations

import pytest

from harvester.config import DEFAULT_API_URL, HarvestSettings, build_harvest_settings

_ENV_NAMES = [
    "CATALOG_API_URL",
    "CATALOG_DOMAIN_LOW",
    "CATALOG_DOMAIN_HIGH",
    "CATALOG_PAGE_CAP",
    "CATALOG_WORKER_COUNT",
    "CATALOG_MAX_ATTEMPTS",
    "CATALOG_TOKEN_BUCKET_CAPACITY",
    "CATALOG_TOKEN_REFILL_INTERVAL_SECONDS",
    "CATALOG_MIN_RANGE_WIDTH",
    "CATALOG_HTTP_TIMEOUT_SECONDS",
    "CATALOG_RECORD_BUFFER_SIZE",
    "CATALOG_ERROR_BUFFER_SIZE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_reference_configuration() -> None:
    settings = build_harvest_settings()

    assert settings == HarvestSettings()
    assert settings.base_url == DEFAULT_API_URL
    assert (settings.domain_low, settings.domain_high) == (0.0, 100000.0)
    assert settings.page_cap == 1000
    assert settings.worker_count == 10
    assert settings.max_attempts == 3
    assert settings.token_bucket_capacity == 10
    assert settings.token_refill_interval_seconds == 0.1


def test_environment_overrides_are_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_API_URL", "  https://catalog.test/products  ")
    monkeypatch.setenv("CATALOG_DOMAIN_HIGH", "2500.5")
    monkeypatch.setenv("CATALOG_WORKER_COUNT", "4")

    settings = build_harvest_settings()

    assert settings.base_url == "https://catalog.test/products"
    assert settings.domain_high == 2500.5
    assert settings.worker_count == 4


def test_invalid_numbers_fall_back_and_values_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_PAGE_CAP", "lots")
    monkeypatch.setenv("CATALOG_WORKER_COUNT", "0")
    monkeypatch.setenv("CATALOG_MAX_ATTEMPTS", "-2")
    monkeypatch.setenv("CATALOG_MIN_RANGE_WIDTH", "-1")

    settings = build_harvest_settings()

    assert settings.page_cap == 1000
    assert settings.worker_count == 1
    assert settings.max_attempts == 1
    assert settings.min_range_width == 0.0


def test_inverted_domain_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CATALOG_DOMAIN_LOW", "500")
    monkeypatch.setenv("CATALOG_DOMAIN_HIGH", "100")

    with pytest.raises(ValueError):
        build_harvest_settings()


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
def test_non_finite_floats_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("CATALOG_DOMAIN_HIGH", raw)
    monkeypatch.setenv("CATALOG_MIN_RANGE_WIDTH", raw)

    settings = build_harvest_settings()

    assert settings.domain_high == 100000.0
    assert settings.min_range_width == 0.01


@pytest.mark.parametrize(
    "overrides",
    [
        {"page_cap": 0},
        {"worker_count": 0},
        {"max_attempts": 0},
        {"token_bucket_capacity": 0},
        {"token_refill_interval_seconds": 0.0},
        {"domain_high": float("nan")},
        {"domain_low": float("-inf")},
    ],
)
def test_settings_reject_values_the_engine_cannot_run_with(overrides: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        HarvestSettings(**overrides)  # type: ignore[arg-type]

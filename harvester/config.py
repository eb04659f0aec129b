"""
harvester/config.py

Environment-driven configuration for catalog harvesting.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_API_URL = "https://api.ecommerce.com/products"


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class HarvestSettings:
    """
    Runtime settings for one harvest run.
    """

    base_url: str = DEFAULT_API_URL
    domain_low: float = 0.0
    domain_high: float = 100000.0
    page_cap: int = 1000
    worker_count: int = 10
    max_attempts: int = 3
    token_bucket_capacity: int = 10
    token_refill_interval_seconds: float = 0.1
    min_range_width: float = 0.01
    timeout_seconds: float = 15.0
    record_buffer_size: int = 1000
    error_buffer_size: int = 100

    def __post_init__(self) -> None:
        if not (math.isfinite(self.domain_low) and math.isfinite(self.domain_high)):
            raise ValueError("Price domain bounds must be finite.")
        if self.domain_low > self.domain_high:
            raise ValueError(
                f"domain_low ({self.domain_low}) must not exceed domain_high ({self.domain_high})."
            )
        for name in ("page_cap", "worker_count", "max_attempts", "token_bucket_capacity"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1.")
        if self.token_refill_interval_seconds <= 0:
            raise ValueError("token_refill_interval_seconds must be positive.")


def build_harvest_settings() -> HarvestSettings:
    """
    Read harvest settings from environment variables with safe fallbacks.
    """

    load_env_files()
    return HarvestSettings(
        base_url=_get_str_env("CATALOG_API_URL", DEFAULT_API_URL),
        domain_low=_get_float_env("CATALOG_DOMAIN_LOW", 0.0),
        domain_high=_get_float_env("CATALOG_DOMAIN_HIGH", 100000.0),
        page_cap=max(1, _get_int_env("CATALOG_PAGE_CAP", 1000)),
        worker_count=max(1, _get_int_env("CATALOG_WORKER_COUNT", 10)),
        max_attempts=max(1, _get_int_env("CATALOG_MAX_ATTEMPTS", 3)),
        token_bucket_capacity=max(1, _get_int_env("CATALOG_TOKEN_BUCKET_CAPACITY", 10)),
        token_refill_interval_seconds=max(
            0.001,
            _get_float_env("CATALOG_TOKEN_REFILL_INTERVAL_SECONDS", 0.1),
        ),
        min_range_width=max(0.0, _get_float_env("CATALOG_MIN_RANGE_WIDTH", 0.01)),
        timeout_seconds=max(1.0, _get_float_env("CATALOG_HTTP_TIMEOUT_SECONDS", 15.0)),
        record_buffer_size=max(1, _get_int_env("CATALOG_RECORD_BUFFER_SIZE", 1000)),
        error_buffer_size=max(1, _get_int_env("CATALOG_ERROR_BUFFER_SIZE", 100)),
    )


@lru_cache(maxsize=1)
def get_harvest_settings() -> HarvestSettings:
    """
    Return cached harvest settings.
    """

    return build_harvest_settings()

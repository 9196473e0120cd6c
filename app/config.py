"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ALLOWED_STORAGE_BACKENDS = {"gcs", "public"}

DEFAULT_DOMAIN_BUCKETS: dict[str, str] = {
    "agriculture": "eo-agriculture-forestry",
    "disaster": "eo-disaster-resilience",
    "marine": "eo-marine",
    "weather": "eo-weather",
    "landuse": "eo-landuse-cartography",
    "health": "eo-public-health",
}

_MB = 1024 * 1024


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


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class StorageSettings:
    """
    Object storage backend and bucket layout.

    ``backend="gcs"`` uses the authenticated client; ``backend="public"``
    reads publicly readable buckets through the JSON API.
    """

    backend: str = "gcs"
    project_id: str | None = None
    credentials_json: str | None = None
    credentials_file: str | None = None
    agriculture_bucket: str = DEFAULT_DOMAIN_BUCKETS["agriculture"]
    domain_buckets: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DOMAIN_BUCKETS))
    public_base_url: str = "https://storage.googleapis.com"


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for the public bucket backend.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class AggregationSettings:
    """
    Limits for the sector aggregation pipeline and its cache.
    """

    max_files: int = 50
    sample_rows: int = 200
    sample_max_bytes: int = 4 * _MB
    top_regions: int = 30
    hull_point_threshold: int = 10
    deadline_seconds: float = 25.0
    cache_ttl_seconds: float = 30 * 60.0
    cache_wait_seconds: float = 30.0


@dataclass(frozen=True)
class RegionDetailsSettings:
    """
    Limits for the per-country record search.
    """

    max_files: int = 15
    sample_rows: int = 200
    sample_max_bytes: int = 4 * _MB
    records_per_file: int = 3
    max_records: int = 50
    deadline_seconds: float = 20.0


@dataclass(frozen=True)
class DomainSampleSettings:
    """
    Limits for domain dataset previews.
    """

    default_limit: int = 10
    max_limit: int = 50
    signed_url_ttl_seconds: int = 15 * 60
    preview_max_object_bytes: int = 1 * _MB
    preview_read_bytes: int = 4096
    preferred_max_bytes: int = 100 * _MB
    other_max_bytes: int = 50 * _MB
    preview_max_chars: int = 2000


@dataclass(frozen=True)
class CacheWarmSettings:
    """
    Periodic aggregation cache refresh.
    """

    enabled: bool = False
    interval_minutes: int = 25


def _domain_buckets_from_env(agriculture_bucket: str) -> dict[str, str]:
    buckets = {
        domain: _get_str_env(f"DOMAIN_BUCKET_{domain.upper()}", default)
        for domain, default in DEFAULT_DOMAIN_BUCKETS.items()
    }
    buckets["agriculture"] = agriculture_bucket
    return buckets


@lru_cache(maxsize=1)
def get_storage_settings() -> StorageSettings:
    """
    Return cached storage settings from environment variables.
    """

    agriculture_bucket = _get_str_env("AGRICULTURE_BUCKET", DEFAULT_DOMAIN_BUCKETS["agriculture"])
    return StorageSettings(
        backend=_get_str_env("STORAGE_BACKEND", "gcs").lower(),
        project_id=_get_optional_str_env("GCS_PROJECT_ID"),
        credentials_json=_get_optional_str_env("GOOGLE_APPLICATION_CREDENTIALS_JSON"),
        credentials_file=_get_optional_str_env("GOOGLE_APPLICATION_CREDENTIALS"),
        agriculture_bucket=agriculture_bucket,
        domain_buckets=_domain_buckets_from_env(agriculture_bucket),
        public_base_url=_get_str_env("PUBLIC_STORAGE_BASE_URL", "https://storage.googleapis.com"),
    )


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("EXTERNAL_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("EXTERNAL_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("EXTERNAL_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_aggregation_settings() -> AggregationSettings:
    """
    Return cached aggregation settings from environment variables.
    """

    return AggregationSettings(
        max_files=max(1, _get_int_env("AGGREGATION_MAX_FILES", 50)),
        sample_rows=max(1, _get_int_env("AGGREGATION_SAMPLE_ROWS", 200)),
        sample_max_bytes=max(1024, _get_int_env("AGGREGATION_SAMPLE_MAX_BYTES", 4 * _MB)),
        top_regions=max(1, _get_int_env("AGGREGATION_TOP_REGIONS", 30)),
        hull_point_threshold=max(3, _get_int_env("AGGREGATION_HULL_POINT_THRESHOLD", 10)),
        deadline_seconds=max(1.0, _get_float_env("AGGREGATION_DEADLINE_SECONDS", 25.0)),
        cache_ttl_seconds=max(1.0, _get_float_env("AGGREGATION_CACHE_TTL_SECONDS", 30 * 60.0)),
        cache_wait_seconds=max(0.0, _get_float_env("AGGREGATION_CACHE_WAIT_SECONDS", 30.0)),
    )


@lru_cache(maxsize=1)
def get_region_details_settings() -> RegionDetailsSettings:
    return RegionDetailsSettings(
        max_files=max(1, _get_int_env("REGION_DETAILS_MAX_FILES", 15)),
        sample_rows=max(1, _get_int_env("REGION_DETAILS_SAMPLE_ROWS", 200)),
        sample_max_bytes=max(1024, _get_int_env("REGION_DETAILS_SAMPLE_MAX_BYTES", 4 * _MB)),
        records_per_file=max(0, _get_int_env("REGION_DETAILS_RECORDS_PER_FILE", 3)),
        max_records=max(0, _get_int_env("REGION_DETAILS_MAX_RECORDS", 50)),
        deadline_seconds=max(1.0, _get_float_env("REGION_DETAILS_DEADLINE_SECONDS", 20.0)),
    )


@lru_cache(maxsize=1)
def get_domain_sample_settings() -> DomainSampleSettings:
    return DomainSampleSettings(
        default_limit=max(1, _get_int_env("DOMAIN_SAMPLE_DEFAULT_LIMIT", 10)),
        max_limit=max(1, _get_int_env("DOMAIN_SAMPLE_MAX_LIMIT", 50)),
        signed_url_ttl_seconds=max(60, _get_int_env("DOMAIN_SAMPLE_SIGNED_URL_TTL_SECONDS", 15 * 60)),
    )


@lru_cache(maxsize=1)
def get_cache_warm_settings() -> CacheWarmSettings:
    return CacheWarmSettings(
        enabled=_get_bool_env("CACHE_WARM_ENABLED", False),
        interval_minutes=max(1, _get_int_env("CACHE_WARM_INTERVAL_MINUTES", 25)),
    )


def get_log_level() -> str:
    return _get_str_env("LOG_LEVEL", "INFO").upper()

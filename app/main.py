from __future__ import annotations

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from app.config import (
    ALLOWED_STORAGE_BACKENDS,
    get_cache_warm_settings,
    get_log_level,
    get_storage_settings,
    load_env_files,
)
from app.logging_utils import configure_logging
from app.schemas.common import HealthResponse

SERVICE_NAME = "EOS Agriculture Extraction API"
SERVICE_VERSION = "1.0.0"

_INT_ENV_VARS = (
    "AGGREGATION_MAX_FILES",
    "AGGREGATION_SAMPLE_ROWS",
    "AGGREGATION_SAMPLE_MAX_BYTES",
    "AGGREGATION_TOP_REGIONS",
    "AGGREGATION_HULL_POINT_THRESHOLD",
    "REGION_DETAILS_MAX_FILES",
    "REGION_DETAILS_SAMPLE_ROWS",
    "REGION_DETAILS_SAMPLE_MAX_BYTES",
    "REGION_DETAILS_RECORDS_PER_FILE",
    "REGION_DETAILS_MAX_RECORDS",
    "DOMAIN_SAMPLE_DEFAULT_LIMIT",
    "DOMAIN_SAMPLE_MAX_LIMIT",
    "DOMAIN_SAMPLE_SIGNED_URL_TTL_SECONDS",
    "EXTERNAL_HTTP_MAX_RETRIES",
    "CACHE_WARM_INTERVAL_MINUTES",
)
_FLOAT_ENV_VARS = (
    "AGGREGATION_DEADLINE_SECONDS",
    "AGGREGATION_CACHE_TTL_SECONDS",
    "AGGREGATION_CACHE_WAIT_SECONDS",
    "REGION_DETAILS_DEADLINE_SECONDS",
    "EXTERNAL_HTTP_TIMEOUT_SECONDS",
    "EXTERNAL_HTTP_BACKOFF_INITIAL_SECONDS",
    "EXTERNAL_HTTP_BACKOFF_MULTIPLIER",
    "EXTERNAL_HTTP_RATE_LIMIT_PER_SECOND",
)
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _validate_env() -> None:
    """
    Validate environment variables at startup.

    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle.

    Rules:
    - STORAGE_BACKEND must be 'gcs' or 'public'.
    - GOOGLE_APPLICATION_CREDENTIALS_JSON, when set, must be a JSON object.
    - GOOGLE_APPLICATION_CREDENTIALS, when set, must point at an existing file.
    - Numeric limits must parse as numbers.
    """

    load_env_files()

    errors: list[str] = []

    # --- Storage backend ------------------------------------------------
    backend = os.getenv("STORAGE_BACKEND", "gcs").strip().lower()
    if backend not in ALLOWED_STORAGE_BACKENDS:
        errors.append(
            f"STORAGE_BACKEND='{backend}' is not valid. Allowed values: {sorted(ALLOWED_STORAGE_BACKENDS)}."
        )

    # --- Credentials ----------------------------------------------------
    credentials_json = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", "").strip()
    if credentials_json:
        try:
            parsed = json.loads(credentials_json)
        except ValueError:
            parsed = None
        if not isinstance(parsed, dict):
            errors.append("GOOGLE_APPLICATION_CREDENTIALS_JSON is set but is not a JSON object.")

    credentials_file = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "").strip()
    if credentials_file and not os.path.isfile(credentials_file):
        errors.append(f"GOOGLE_APPLICATION_CREDENTIALS points at a missing file: {credentials_file}.")

    # --- Numeric limits -------------------------------------------------
    for name in _INT_ENV_VARS:
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            int(raw)
        except ValueError:
            errors.append(f"{name}='{raw}' is not an integer.")
    for name in _FLOAT_ENV_VARS:
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            float(raw)
        except ValueError:
            errors.append(f"{name}='{raw}' is not a number.")

    # --- Logging --------------------------------------------------------
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        errors.append(f"LOG_LEVEL='{log_level}' is not valid. Allowed values: {sorted(_LOG_LEVELS)}.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Start the cache warm scheduler on boot when enabled; shut it down on exit."""
    log = logging.getLogger(__name__)
    warm_settings = get_cache_warm_settings()
    if not warm_settings.enabled:
        log.info("Cache warm scheduler disabled")
        yield
        return

    from app.scheduler.jobs import build_scheduler
    from app.services.aggregation_cache import get_aggregation_cache

    scheduler = build_scheduler(get_aggregation_cache(), warm_settings)
    scheduler.start()
    log.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        log.info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging(get_log_level())

    application = FastAPI(
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        lifespan=_lifespan,
    )

    from app.api.errors import register_exception_handlers
    from app.api.routers import agriculture_router, domains_router

    register_exception_handlers(application)
    application.include_router(agriculture_router)
    application.include_router(domains_router)

    @application.get("/api/health", response_model=HealthResponse)
    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
            storage_backend=get_storage_settings().backend,
            timestamp=datetime.now(tz=timezone.utc),
        )

    return application


app = create_app()

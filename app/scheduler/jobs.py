"""
app/scheduler/jobs.py

APScheduler-based background refresh of the agriculture aggregation cache.

Schedule
--------
  warm_aggregation_cache -- every ``CACHE_WARM_INTERVAL_MINUTES`` minutes,
                            first run right after start-up

Keeping the interval below the cache TTL means request handlers almost
always find a fresh entry.

Lifecycle
---------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import CacheWarmSettings
from app.services.aggregation_cache import AggregationCache

logger = logging.getLogger(__name__)

WARM_JOB_ID = "warm_aggregation_cache"


def run_cache_warm(cache: AggregationCache) -> None:
    """
    Recompute the aggregation and log the outcome. Failures are logged and
    left to the next run.
    """

    logger.info("Scheduler: warm_aggregation_cache starting")
    outcome = cache.refresh()
    if outcome.error is not None:
        logger.warning(
            "Scheduler: warm_aggregation_cache failed source=%s error=%s",
            outcome.source,
            outcome.error,
        )
        return
    logger.info(
        "Scheduler: warm_aggregation_cache complete sectors=%s files_processed=%s",
        len(outcome.result.sectors),
        outcome.result.summary.files_processed,
    )


def build_scheduler(cache: AggregationCache, settings: CacheWarmSettings) -> BackgroundScheduler:
    """
    Build the scheduler with the cache warm job registered.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_cache_warm,
        trigger="interval",
        minutes=settings.interval_minutes,
        args=[cache],
        next_run_time=datetime.now(tz=timezone.utc),
        id=WARM_JOB_ID,
        name="Agriculture aggregation cache warm-up",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=settings.interval_minutes * 60,
    )
    return scheduler

"""
app/services/aggregation_cache.py

Process-wide cache of the sector aggregation with single-flight recompute.

State machine
-------------
  Idle       -- entry fresh        --> served from cache ("cached")
  Idle       -- entry absent/stale --> Computing (the caller becomes leader)
  Computing  -- other callers      --> wait on the same Future
  Computing  -- success            --> Idle, entry replaced ("fresh")
  Computing  -- failure            --> Idle, entry unchanged, error surfaced

Followers that wait longer than ``wait_timeout_seconds`` get the stale entry
or the labeled template data instead of blocking.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from app.config import get_aggregation_settings
from app.domain.agriculture import AggregationResult, CacheOutcome
from app.logging_utils import log_event
from app.services.agriculture_service import get_agriculture_aggregation_service
from extraction.fallback import fallback_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Entry:
    result: AggregationResult
    stored_at: float


class AggregationCache:
    """
    TTL cache around one aggregation callable.

    Clocks are injected so expiry can be driven deterministically.
    """

    def __init__(
        self,
        *,
        compute: Callable[[], AggregationResult],
        ttl_seconds: float,
        wait_timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
    ) -> None:
        self._compute = compute
        self._ttl_seconds = ttl_seconds
        self._wait_timeout_seconds = wait_timeout_seconds
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._entry: _Entry | None = None
        self._inflight: Future[AggregationResult] | None = None
        self._compute_count = 0

    @property
    def compute_count(self) -> int:
        """Number of computations started since construction."""
        return self._compute_count

    @property
    def is_computing(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def entry_age_seconds(self) -> float | None:
        with self._lock:
            if self._entry is None:
                return None
            return self._clock() - self._entry.stored_at

    def get(self) -> CacheOutcome:
        """
        Return the cached aggregation, recomputing when absent or expired.
        """

        with self._lock:
            entry = self._entry
            if entry is not None and not self._is_expired(entry):
                return CacheOutcome(result=entry.result, source="cached")
            future, is_leader = self._join_or_start()
        return self._resolve(future, is_leader)

    def refresh(self) -> CacheOutcome:
        """
        Force a recomputation. Joins one already in flight instead of
        starting a second.
        """

        with self._lock:
            future, is_leader = self._join_or_start()
        return self._resolve(future, is_leader)

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None
        log_event(logger, logging.INFO, "aggregation_cache_invalidated")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_expired(self, entry: _Entry) -> bool:
        return self._clock() - entry.stored_at >= self._ttl_seconds

    def _join_or_start(self) -> tuple[Future[AggregationResult], bool]:
        # caller holds self._lock
        if self._inflight is not None:
            return self._inflight, False
        future: Future[AggregationResult] = Future()
        self._inflight = future
        self._compute_count += 1
        return future, True

    def _resolve(self, future: Future[AggregationResult], is_leader: bool) -> CacheOutcome:
        if is_leader:
            self._run(future)
        try:
            result = future.result(timeout=None if is_leader else self._wait_timeout_seconds)
        except FutureTimeoutError:
            log_event(
                logger,
                logging.WARNING,
                "aggregation_cache_wait_timeout",
                wait_timeout_seconds=self._wait_timeout_seconds,
            )
            return self._degraded(error=None)
        except Exception as exc:  # noqa: BLE001
            return self._degraded(error=str(exc) or exc.__class__.__name__)
        return CacheOutcome(result=result, source="fresh")

    def _run(self, future: Future[AggregationResult]) -> None:
        started = self._clock()
        log_event(logger, logging.INFO, "aggregation_cache_compute_started")
        try:
            result = self._compute()
        except Exception as exc:  # noqa: BLE001
            with self._lock:
                self._inflight = None
            logger.exception("Aggregation computation failed error=%s", exc)
            future.set_exception(exc)
            return

        with self._lock:
            self._entry = _Entry(result=result, stored_at=self._clock())
            self._inflight = None
        log_event(
            logger,
            logging.INFO,
            "aggregation_cache_compute_finished",
            elapsed_seconds=round(self._clock() - started, 3),
            sectors=len(result.sectors),
        )
        future.set_result(result)

    def _degraded(self, *, error: str | None) -> CacheOutcome:
        with self._lock:
            entry = self._entry
        if entry is not None:
            return CacheOutcome(result=entry.result, source="stale", error=error)
        return CacheOutcome(result=fallback_result(self._wall_clock()), source="fallback", error=error)


@lru_cache(maxsize=1)
def get_aggregation_cache() -> AggregationCache:
    """
    Build and cache the process-wide aggregation cache.
    """

    service = get_agriculture_aggregation_service()
    settings = get_aggregation_settings()
    return AggregationCache(
        compute=service.aggregate,
        ttl_seconds=settings.cache_ttl_seconds,
        wait_timeout_seconds=settings.cache_wait_seconds,
    )

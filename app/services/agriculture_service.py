"""
app/services/agriculture_service.py

Aggregation pipeline: list agriculture CSV objects, sample each one, and fold
the extracted regions into per-sector aggregates.
"""

from __future__ import annotations

import csv
import logging
import time
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from app.config import AggregationSettings, get_aggregation_settings, get_storage_settings
from app.deadline import Deadline, DeadlineExceeded
from app.domain.agriculture import (
    AggregationResult,
    AggregationSummary,
    RemoteObject,
    SectorAggregate,
)
from app.logging_utils import log_event
from app.storage import ObjectStore, StorageError
from app.storage.factory import get_object_store
from extraction.aggregator import aggregate_regions
from extraction.columns import sniff_columns
from extraction.csv_sampler import sample_csv
from extraction.sectors import classify_sector

logger = logging.getLogger(__name__)


def select_csv_objects(objects: list[RemoteObject], max_files: int) -> list[RemoteObject]:
    """
    Keep ``.csv`` objects, smallest first (ties by name), capped to *max_files*.
    """

    csv_objects = [obj for obj in objects if obj.name.lower().endswith(".csv")]
    csv_objects.sort(key=lambda obj: (obj.size_bytes, obj.name))
    return csv_objects[: max(0, max_files)]


class AgricultureAggregationService:
    """
    Builds one ``AggregationResult`` from the agriculture bucket.
    """

    def __init__(
        self,
        *,
        store: ObjectStore,
        bucket: str,
        settings: AggregationSettings,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._settings = settings
        self._clock = clock
        self._wall_clock = wall_clock

    @property
    def bucket(self) -> str:
        return self._bucket

    def new_deadline(self) -> Deadline:
        return Deadline(self._settings.deadline_seconds, clock=self._clock)

    def aggregate(self, deadline: Deadline | None = None) -> AggregationResult:
        """
        Run the full pipeline once.

        Listing failures propagate as ``StorageError``. Per-object read
        failures are counted and skipped. When *deadline* expires, the
        remaining objects are skipped and the summary is flagged.
        """

        deadline = deadline or self.new_deadline()
        settings = self._settings
        started = self._clock()

        objects = self._store.list_objects(self._bucket, deadline=deadline)
        selected = select_csv_objects(objects, settings.max_files)

        sectors: dict[str, SectorAggregate] = {}
        processed = failed = without_geo = groups_skipped = 0
        deadline_exceeded = False

        for obj in selected:
            if deadline.expired():
                deadline_exceeded = True
                break

            sector = classify_sector(obj.name)
            try:
                sample = sample_csv(
                    self._store.read_bytes(
                        self._bucket,
                        obj.name,
                        max_bytes=settings.sample_max_bytes,
                        deadline=deadline,
                    ),
                    row_limit=settings.sample_rows,
                    max_bytes=settings.sample_max_bytes,
                )
            except DeadlineExceeded:
                deadline_exceeded = True
                break
            except StorageError as exc:
                failed += 1
                log_event(logger, logging.WARNING, "file_skipped", file=obj.name, reason="read_failed", error=str(exc))
                continue
            except (csv.Error, ValueError) as exc:
                failed += 1
                log_event(logger, logging.WARNING, "file_skipped", file=obj.name, reason="parse_failed", error=str(exc))
                continue

            roles = sniff_columns(sample.headers)
            if not roles.is_geographic:
                without_geo += 1
                log_event(logger, logging.INFO, "file_skipped", file=obj.name, reason="no_geographic_columns")
                continue

            extraction = aggregate_regions(
                sample.rows,
                roles,
                sector,
                source_file=obj.name,
                top_k=settings.top_regions,
                hull_threshold=settings.hull_point_threshold,
            )
            processed += 1
            groups_skipped += extraction.skipped_groups

            aggregate = sectors.get(sector.key)
            if aggregate is None:
                aggregate = sectors[sector.key] = SectorAggregate(sector=sector)
            aggregate.regions.extend(extraction.regions)
            aggregate.files.append(obj.name)
            aggregate.data_points += sum(region.properties.data_points for region in extraction.regions)

        if deadline_exceeded:
            log_event(
                logger,
                logging.WARNING,
                "aggregation_deadline_exceeded",
                files_processed=processed,
                files_considered=len(selected),
            )

        summary = AggregationSummary(
            files_listed=len(objects),
            files_considered=len(selected),
            files_processed=processed,
            files_failed=failed,
            files_without_geo=without_geo,
            groups_skipped=groups_skipped,
            deadline_exceeded=deadline_exceeded,
        )
        logger.info(
            "Aggregation complete bucket=%s sectors=%s files_processed=%s files_failed=%s elapsed_seconds=%.2f",
            self._bucket,
            len(sectors),
            processed,
            failed,
            self._clock() - started,
        )
        return AggregationResult(sectors=sectors, summary=summary, computed_at=self._wall_clock())


@lru_cache(maxsize=1)
def get_agriculture_aggregation_service() -> AgricultureAggregationService:
    """
    Build and cache the aggregation service.
    """

    return AgricultureAggregationService(
        store=get_object_store(),
        bucket=get_storage_settings().agriculture_bucket,
        settings=get_aggregation_settings(),
    )

"""
app/services/region_details_service.py

Per-country record search across the agriculture bucket.
"""

from __future__ import annotations

import csv
import logging
import time
from functools import lru_cache
from typing import Callable

from app.config import RegionDetailsSettings, get_region_details_settings, get_storage_settings
from app.deadline import Deadline, DeadlineExceeded
from app.domain.agriculture import CountrySectorRecords, RegionDetails
from app.logging_utils import log_event
from app.storage import ObjectStore, StorageError
from app.storage.factory import get_object_store
from extraction.columns import sniff_columns
from extraction.country_bounds import country_matches
from extraction.csv_sampler import sample_csv
from extraction.sectors import classify_sector, get_sector

logger = logging.getLogger(__name__)


class RegionDetailsService:
    """
    Finds rows for one country in the first CSV objects of the bucket.
    """

    def __init__(
        self,
        *,
        store: ObjectStore,
        bucket: str,
        settings: RegionDetailsSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._bucket = bucket
        self._settings = settings
        self._clock = clock

    def find(
        self,
        country: str,
        *,
        sector: str | None = None,
        deadline: Deadline | None = None,
    ) -> RegionDetails:
        """
        Scan up to ``max_files`` CSV objects for rows mentioning *country*.

        Raises ``ValueError`` for an empty country or an unknown sector key.
        Listing failures propagate as ``StorageError``.
        """

        query = country.strip()
        if not query:
            raise ValueError("Country parameter is required.")
        sector_key = sector.strip().lower() if sector and sector.strip() and sector.strip().lower() != "all" else None
        if sector_key is not None and get_sector(sector_key) is None:
            raise ValueError(f"Unknown sector '{sector}'.")

        settings = self._settings
        deadline = deadline or Deadline(settings.deadline_seconds, clock=self._clock)
        objects = self._store.list_objects(self._bucket, deadline=deadline)
        candidates = [obj for obj in objects if obj.name.lower().endswith(".csv")]
        candidates.sort(key=lambda obj: (obj.size_bytes, obj.name))

        sectors: dict[str, CountrySectorRecords] = {}
        samples: list[dict[str, str]] = []
        total_files = total_records = scanned = failed = 0
        deadline_exceeded = False

        for obj in candidates:
            if scanned >= settings.max_files:
                break
            file_sector = classify_sector(obj.name)
            if sector_key is not None and file_sector.key != sector_key:
                continue
            if deadline.expired():
                deadline_exceeded = True
                break

            scanned += 1
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

            country_column = sniff_columns(sample.headers).country_column
            if country_column is None:
                continue
            matches = [row for row in sample.rows if country_matches(row.get(country_column, ""), query)]
            if not matches:
                continue

            total_files += 1
            total_records += len(matches)
            bucket_entry = sectors.get(file_sector.key)
            if bucket_entry is None:
                bucket_entry = sectors[file_sector.key] = CountrySectorRecords(sector=file_sector)
            bucket_entry.records += len(matches)
            bucket_entry.files.append(obj.name)

            source_file = obj.name.rsplit("/", 1)[-1]
            for row in matches[: settings.records_per_file]:
                if len(samples) >= settings.max_records:
                    break
                samples.append({**row, "Sector": file_sector.key, "SourceFile": source_file})

        logger.info(
            "Region details country=%s sector=%s files_scanned=%s files_matched=%s records=%s",
            query,
            sector_key or "all",
            scanned,
            total_files,
            total_records,
        )
        return RegionDetails(
            country=query,
            sector_filter=sector_key,
            total_files=total_files,
            total_records=total_records,
            sectors=sectors,
            samples=samples,
            files_scanned=scanned,
            files_failed=failed,
            deadline_exceeded=deadline_exceeded,
        )


@lru_cache(maxsize=1)
def get_region_details_service() -> RegionDetailsService:
    return RegionDetailsService(
        store=get_object_store(),
        bucket=get_storage_settings().agriculture_bucket,
        settings=get_region_details_settings(),
    )

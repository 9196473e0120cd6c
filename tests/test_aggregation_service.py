"""
tests/test_aggregation_service.py

Pytest tests for the aggregation pipeline over an in-memory object store.

Coverage
--------
- End-to-end: three sector files with a Country column
- File selection: csv only, smallest first, capped
- Non-geographic files and read failures are counted, not fatal
- Unparseable files are skipped without failing the whole run
- Listing failure propagates
- Deadline expiry stops processing and flags the summary
"""

from __future__ import annotations

import csv

import pytest

from app.config import AggregationSettings
from app.deadline import Deadline
from app.domain.agriculture import RemoteObject
from app.services.agriculture_service import AgricultureAggregationService, select_csv_objects
from app.storage.base import StorageError

BUCKET = "eo-agriculture-forestry"
COUNTRY_CSV = "Country,Value\nBrazil,10\nBrazil,5\nArgentina,7\n"


def _service(store, clock, wall_clock, **overrides) -> AgricultureAggregationService:
    return AgricultureAggregationService(
        store=store,
        bucket=BUCKET,
        settings=AggregationSettings(**overrides),
        clock=clock,
        wall_clock=wall_clock,
    )


class TestEndToEnd:
    def test_three_sector_files(self, store, clock, wall_clock) -> None:
        for name in ("crop_production_2020.csv", "livestock_stats.csv", "fertilizer_report.csv"):
            store.put(BUCKET, name, COUNTRY_CSV)

        result = _service(store, clock, wall_clock).aggregate()

        assert set(result.sectors) == {"crops_production", "livestock", "fertilizers"}
        for aggregate in result.sectors.values():
            assert aggregate.total_regions == 2
            countries = [region.country for region in aggregate.regions]
            assert countries == ["Brazil", "Argentina"]
            brazil = aggregate.regions[0]
            assert brazil.properties.data_points == 2
            assert brazil.properties.production.value == pytest.approx(15.0)
            assert aggregate.data_points == 3
            assert len(aggregate.files) == 1

        summary = result.summary
        assert summary.files_listed == 3
        assert summary.files_processed == 3
        assert summary.files_failed == 0
        assert summary.deadline_exceeded is False

    def test_files_of_one_sector_are_appended(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade_a.csv", "Area\nKenya\n")
        store.put(BUCKET, "trade_b.csv", "Area\nKenya\nGhana\n")

        aggregate = _service(store, clock, wall_clock).aggregate().sectors["trade"]

        assert aggregate.files == ["trade_a.csv", "trade_b.csv"]
        assert [region.country for region in aggregate.regions] == ["Kenya", "Kenya", "Ghana"]

    def test_point_file_produces_measured_polygons(self, store, clock, wall_clock) -> None:
        store.put(
            BUCKET,
            "harvest_sites.csv",
            "Region,Latitude,Longitude\nRift,-1,36\nRift,-2,37\nRift,0,38\n",
        )

        region = _service(store, clock, wall_clock).aggregate().sectors["crops_production"].regions[0]

        assert region.boundary_method == "convex_hull"
        assert region.properties.area.provenance == "measured"

    def test_sectors_keep_first_seen_order(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "b_livestock.csv", "Area\nKenya\nGhana\n")
        store.put(BUCKET, "a_trade.csv", "Area\nKenya\n")

        result = _service(store, clock, wall_clock).aggregate()

        # smallest object first
        assert list(result.sectors) == ["trade", "livestock"]


class TestSelection:
    def test_csv_only_smallest_first_capped(self) -> None:
        objects = [
            RemoteObject(name="big.csv", size_bytes=300, updated_at=None, content_type=None),
            RemoteObject(name="notes.txt", size_bytes=1, updated_at=None, content_type=None),
            RemoteObject(name="b.CSV", size_bytes=100, updated_at=None, content_type=None),
            RemoteObject(name="a.csv", size_bytes=100, updated_at=None, content_type=None),
        ]
        selected = select_csv_objects(objects, max_files=2)
        assert [obj.name for obj in selected] == ["a.csv", "b.CSV"]

    def test_max_files_limits_reads(self, store, clock, wall_clock) -> None:
        for index in range(5):
            store.put(BUCKET, f"trade_{index}.csv", "Area\nKenya\n")

        result = _service(store, clock, wall_clock, max_files=2).aggregate()

        assert len(store.read_log) == 2
        assert result.summary.files_listed == 5
        assert result.summary.files_considered == 2


class TestFailures:
    def test_non_geographic_file_is_skipped(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade_items.csv", "Item,Year,Value\nRice,2020,1\n")

        result = _service(store, clock, wall_clock).aggregate()

        assert result.sectors == {}
        assert result.summary.files_without_geo == 1
        assert result.summary.files_processed == 0

    def test_read_failure_is_counted_and_processing_continues(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade_a.csv", "Area\nKenya\n")
        store.put(BUCKET, "livestock_b.csv", "Area\nGhana\nChad\n")
        store.fail_reads.add("trade_a.csv")

        result = _service(store, clock, wall_clock).aggregate()

        assert list(result.sectors) == ["livestock"]
        assert result.summary.files_failed == 1
        assert result.summary.files_processed == 1

    def test_unparseable_file_does_not_sink_the_run(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "crop_production_2020.csv", COUNTRY_CSV)
        store.put(BUCKET, "trade_broken.csv", "x" * 200_000 + "\nBrazil\n")

        result = _service(store, clock, wall_clock).aggregate()

        assert list(result.sectors) == ["crops_production"]
        assert result.summary.files_processed == 1
        assert result.summary.files_without_geo == 1
        assert result.summary.files_failed == 0

    def test_parse_error_is_counted_and_processing_continues(self, store, clock, wall_clock, monkeypatch) -> None:
        from app.services import agriculture_service

        real_sample_csv = agriculture_service.sample_csv
        store.put(BUCKET, "trade_a.csv", "Area\nKenya\n")
        store.put(BUCKET, "livestock_b.csv", "Area\nGhana\nChad\n")

        def sample_or_fail(chunks, **kwargs):
            sample = real_sample_csv(chunks, **kwargs)
            if sample.rows and sample.rows[0].get("Area") == "Kenya":
                raise csv.Error("field larger than field limit")
            return sample

        monkeypatch.setattr(agriculture_service, "sample_csv", sample_or_fail)

        result = _service(store, clock, wall_clock).aggregate()

        assert list(result.sectors) == ["livestock"]
        assert result.summary.files_failed == 1
        assert result.summary.files_processed == 1

    def test_listing_failure_propagates(self, store, clock, wall_clock) -> None:
        store.fail_listing = True
        with pytest.raises(StorageError):
            _service(store, clock, wall_clock).aggregate()

    def test_unmatched_countries_are_counted(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade.csv", "Area\nAtlantis\nKenya\n")

        result = _service(store, clock, wall_clock).aggregate()

        assert result.summary.groups_skipped == 1


class TestDeadline:
    def test_expired_deadline_skips_remaining_files(self, store, clock, wall_clock) -> None:
        for index in range(4):
            store.put(BUCKET, f"trade_{index}.csv", "Area\nKenya\n")
        store.on_read = lambda name: clock.advance(10.0)

        result = _service(store, clock, wall_clock).aggregate(Deadline(15.0, clock=clock))

        assert result.summary.deadline_exceeded is True
        assert result.summary.files_processed == 1
        assert result.sectors["trade"].files == ["trade_0.csv"]

    def test_deadline_expired_before_listing(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade.csv", "Area\nKenya\n")
        deadline = Deadline(1.0, clock=clock)
        clock.advance(2.0)

        with pytest.raises(StorageError):
            _service(store, clock, wall_clock).aggregate(deadline)

    def test_default_deadline_comes_from_settings(self, store, clock, wall_clock) -> None:
        store.put(BUCKET, "trade_0.csv", "Area\nKenya\n")
        store.put(BUCKET, "trade_1.csv", "Area\nKenya\n")
        store.on_read = lambda name: clock.advance(30.0)

        result = _service(store, clock, wall_clock, deadline_seconds=25.0).aggregate()

        assert result.summary.deadline_exceeded is True

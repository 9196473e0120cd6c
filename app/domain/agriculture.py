"""
app/domain/agriculture.py

Domain models shared by the extraction pipeline, the aggregation cache and
the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Coordinate = tuple[float, float]
"""One ``(lat, lng)`` pair."""

ParsedRow = dict[str, str]
"""Mapping of CSV header to raw string value."""

Provenance = Literal["measured", "placeholder"]
BoundaryMethod = Literal["convex_hull", "bounding_box", "country_lookup", "template"]
CacheSource = Literal["fresh", "cached", "stale", "fallback"]

POINT_BOUNDARY_METHODS: frozenset[str] = frozenset({"convex_hull", "bounding_box"})


@dataclass(frozen=True)
class RemoteObject:
    """
    One object listed from a storage container.
    """

    name: str
    size_bytes: int
    updated_at: datetime | None
    content_type: str | None


@dataclass(frozen=True)
class CSVSample:
    """
    Bounded sample of a CSV object: header sequence plus parsed rows.
    """

    headers: tuple[str, ...]
    rows: list[ParsedRow]
    bytes_read: int = 0
    truncated: bool = False


@dataclass(frozen=True)
class ColumnRoles:
    """
    Inferred mapping of CSV headers to geographic roles.
    """

    country_column: str | None = None
    lat_column: str | None = None
    lng_column: str | None = None
    value_column: str | None = None

    @property
    def has_points(self) -> bool:
        return self.lat_column is not None and self.lng_column is not None

    @property
    def is_geographic(self) -> bool:
        return self.has_points or self.country_column is not None


@dataclass(frozen=True)
class Sector:
    """
    Fixed agriculture category with its presentational metadata.
    """

    key: str
    name: str
    icon: str
    color: str
    region_label: str
    patterns: tuple[str, ...] = ()
    commodities: tuple[str, ...] = ()


@dataclass(frozen=True)
class Measurement:
    """
    A statistic together with where it came from.

    ``value`` is None when nothing is known. Placeholder values are never
    reported without ``provenance="placeholder"``.
    """

    value: float | None
    provenance: Provenance

    @classmethod
    def measured(cls, value: float) -> "Measurement":
        return cls(value=value, provenance="measured")

    @classmethod
    def placeholder(cls, value: float | None = None) -> "Measurement":
        return cls(value=value, provenance="placeholder")


@dataclass(frozen=True)
class RegionProperties:
    area: Measurement
    production: Measurement
    data_points: int
    sector: str
    source_file: str | None = None
    countries: tuple[str, ...] = ()


@dataclass(frozen=True)
class Region:
    """
    Named geographic polygon with its statistics.

    ``polygon`` is a closed ring of ``(lat, lng)`` pairs.
    """

    name: str
    country: str
    polygon: tuple[Coordinate, ...]
    boundary_method: BoundaryMethod
    properties: RegionProperties


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


@dataclass
class SectorAggregate:
    """
    Regions accumulated for one sector across every processed file.
    """

    sector: Sector
    regions: list[Region] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    data_points: int = 0

    @property
    def total_regions(self) -> int:
        return len(self.regions)

    def bounding_box(self) -> BoundingBox | None:
        vertices = [vertex for region in self.regions for vertex in region.polygon]
        if not vertices:
            return None
        lats = [lat for lat, _ in vertices]
        lngs = [lng for _, lng in vertices]
        return BoundingBox(min_lat=min(lats), max_lat=max(lats), min_lng=min(lngs), max_lng=max(lngs))


@dataclass(frozen=True)
class AggregationSummary:
    """
    Counters describing one aggregation run.
    """

    files_listed: int = 0
    files_considered: int = 0
    files_processed: int = 0
    files_failed: int = 0
    files_without_geo: int = 0
    groups_skipped: int = 0
    deadline_exceeded: bool = False


@dataclass(frozen=True)
class AggregationResult:
    sectors: dict[str, SectorAggregate]
    summary: AggregationSummary
    computed_at: datetime


@dataclass(frozen=True)
class CacheOutcome:
    """
    What the aggregation cache handed back to one caller.
    """

    result: AggregationResult
    source: CacheSource
    error: str | None = None


@dataclass
class CountrySectorRecords:
    """
    Matching records for one country within one sector.
    """

    sector: Sector
    records: int = 0
    files: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RegionDetails:
    """
    Result of scanning the bucket for rows that mention one country.

    ``samples`` are raw rows tagged with ``Sector`` and ``SourceFile``.
    """

    country: str
    sector_filter: str | None
    total_files: int
    total_records: int
    sectors: dict[str, CountrySectorRecords]
    samples: list[dict[str, str]]
    files_scanned: int = 0
    files_failed: int = 0
    deadline_exceeded: bool = False

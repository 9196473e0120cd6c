"""
app/schemas/agriculture.py

Response schemas for agriculture sector and region endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.domain.agriculture import (
    BoundingBox,
    CacheOutcome,
    Measurement,
    Region,
    Sector,
    SectorAggregate,
)
from app.schemas.common import CamelModel


class MeasurementResponse(CamelModel):
    value: float | None = None
    provenance: Literal["measured", "placeholder"]

    @classmethod
    def from_domain(cls, measurement: Measurement) -> "MeasurementResponse":
        return cls(value=measurement.value, provenance=measurement.provenance)


class RegionPropertiesResponse(CamelModel):
    area: MeasurementResponse
    production: MeasurementResponse
    data_points: int = Field(..., ge=0)
    sector: str
    source_file: str | None = None
    countries: list[str] = Field(default_factory=list)


class RegionResponse(CamelModel):
    """
    One region polygon. ``coordinates`` is a closed ring of ``[lat, lng]``.
    """

    name: str
    country: str
    coordinates: list[tuple[float, float]]
    boundary_method: Literal["convex_hull", "bounding_box", "country_lookup", "template"]
    properties: RegionPropertiesResponse

    @classmethod
    def from_domain(cls, region: Region) -> "RegionResponse":
        properties = region.properties
        return cls(
            name=region.name,
            country=region.country,
            coordinates=list(region.polygon),
            boundary_method=region.boundary_method,
            properties=RegionPropertiesResponse(
                area=MeasurementResponse.from_domain(properties.area),
                production=MeasurementResponse.from_domain(properties.production),
                data_points=properties.data_points,
                sector=properties.sector,
                source_file=properties.source_file,
                countries=list(properties.countries),
            ),
        )


class BoundsResponse(CamelModel):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @classmethod
    def from_domain(cls, box: BoundingBox | None) -> "BoundsResponse | None":
        if box is None:
            return None
        return cls(min_lat=box.min_lat, max_lat=box.max_lat, min_lng=box.min_lng, max_lng=box.max_lng)


class SectorResponse(CamelModel):
    """
    Regions of one sector plus its presentational metadata.
    """

    key: str
    name: str
    icon: str
    color: str
    commodities: list[str] = Field(default_factory=list)
    regions: list[RegionResponse]
    total_regions: int = Field(..., ge=0)
    data_points: int = Field(..., ge=0)
    files: list[str] = Field(default_factory=list)
    bounds: BoundsResponse | None = None


class AggregationSummaryResponse(CamelModel):
    source: Literal["fresh", "cached", "stale", "fallback"]
    timestamp: datetime
    computed_at: datetime
    total_sectors: int = Field(..., ge=0)
    total_regions: int = Field(..., ge=0)
    files_listed: int = Field(..., ge=0)
    files_considered: int = Field(..., ge=0)
    files_processed: int = Field(..., ge=0)
    files_failed: int = Field(..., ge=0)
    files_without_geo: int = Field(..., ge=0)
    groups_skipped: int = Field(..., ge=0)
    deadline_exceeded: bool
    error: str | None = None


class AgricultureDataResponse(CamelModel):
    """
    Sector map as served by ``/real-data`` and ``/cache/refresh``.
    """

    success: bool
    sectors: dict[str, SectorResponse]
    summary: AggregationSummaryResponse
    error: str | None = None


class RealCoordinatesResponse(CamelModel):
    """
    Point-derived regions only, keyed by sector.
    """

    success: bool
    coordinates: dict[str, SectorResponse]
    summary: AggregationSummaryResponse
    error: str | None = None


class SectorCatalogEntryResponse(CamelModel):
    key: str
    name: str
    icon: str
    color: str
    region_label: str
    patterns: list[str]
    commodities: list[str]

    @classmethod
    def from_domain(cls, sector: Sector) -> "SectorCatalogEntryResponse":
        return cls(
            key=sector.key,
            name=sector.name,
            icon=sector.icon,
            color=sector.color,
            region_label=sector.region_label,
            patterns=list(sector.patterns),
            commodities=list(sector.commodities),
        )


class SectorCatalogResponse(CamelModel):
    success: bool = True
    sectors: list[SectorCatalogEntryResponse]


class CountrySectorResponse(CamelModel):
    name: str
    records: int = Field(..., ge=0)
    files: list[str]


class RegionDetailsSummaryResponse(CamelModel):
    total_files: int = Field(..., ge=0)
    total_records: int = Field(..., ge=0)
    found_sectors: list[str]
    files_scanned: int = Field(..., ge=0)
    files_failed: int = Field(..., ge=0)
    deadline_exceeded: bool


class SearchParamsResponse(CamelModel):
    country: str
    sector: str | None = None


class RegionDetailsResponse(CamelModel):
    """
    Rows mentioning one country. ``data`` keeps the raw CSV headers.
    """

    success: bool = True
    country: str
    sector: str
    summary: RegionDetailsSummaryResponse
    sectors: dict[str, CountrySectorResponse]
    data: list[dict[str, str]]
    search_params: SearchParamsResponse


def sector_response(
    aggregate: SectorAggregate,
    *,
    regions: list[Region] | None = None,
    with_bounds: bool = False,
) -> SectorResponse:
    """
    Serialize one sector aggregate, optionally restricted to *regions*.
    """

    selected = aggregate.regions if regions is None else regions
    sector = aggregate.sector
    bounds = None
    if with_bounds:
        bounds = BoundsResponse.from_domain(SectorAggregate(sector=sector, regions=list(selected)).bounding_box())
    return SectorResponse(
        key=sector.key,
        name=sector.name,
        icon=sector.icon,
        color=sector.color,
        commodities=list(sector.commodities),
        regions=[RegionResponse.from_domain(region) for region in selected],
        total_regions=len(selected),
        data_points=sum(region.properties.data_points for region in selected),
        files=list(aggregate.files),
        bounds=bounds,
    )


def summary_response(
    outcome: CacheOutcome,
    *,
    timestamp: datetime,
    sectors: dict[str, SectorResponse],
) -> AggregationSummaryResponse:
    summary = outcome.result.summary
    return AggregationSummaryResponse(
        source=outcome.source,
        timestamp=timestamp,
        computed_at=outcome.result.computed_at,
        total_sectors=len(sectors),
        total_regions=sum(sector.total_regions for sector in sectors.values()),
        files_listed=summary.files_listed,
        files_considered=summary.files_considered,
        files_processed=summary.files_processed,
        files_failed=summary.files_failed,
        files_without_geo=summary.files_without_geo,
        groups_skipped=summary.groups_skipped,
        deadline_exceeded=summary.deadline_exceeded,
        error=outcome.error,
    )

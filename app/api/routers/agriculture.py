"""
app/api/routers/agriculture.py

Agriculture sector, region and cache HTTP endpoints.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.domain.agriculture import POINT_BOUNDARY_METHODS, CacheOutcome
from app.schemas.agriculture import (
    AgricultureDataResponse,
    CountrySectorResponse,
    RealCoordinatesResponse,
    RegionDetailsResponse,
    RegionDetailsSummaryResponse,
    SearchParamsResponse,
    SectorCatalogEntryResponse,
    SectorCatalogResponse,
    sector_response,
    summary_response,
)
from app.services.aggregation_cache import AggregationCache, get_aggregation_cache
from app.services.region_details_service import RegionDetailsService, get_region_details_service
from app.storage import StorageError
from extraction.sectors import all_sectors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agriculture", tags=["agriculture"])


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _mark_failure(outcome: CacheOutcome, response: Response) -> bool:
    """
    Failed computations still return labeled data, with a 503 status.
    """

    if outcome.error is None:
        return True
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return False


def _data_response(outcome: CacheOutcome, response: Response) -> AgricultureDataResponse:
    success = _mark_failure(outcome, response)
    sectors = {key: sector_response(aggregate) for key, aggregate in outcome.result.sectors.items()}
    return AgricultureDataResponse(
        success=success,
        sectors=sectors,
        summary=summary_response(outcome, timestamp=_now(), sectors=sectors),
        error=outcome.error,
    )


@router.get("/real-data", response_model=AgricultureDataResponse)
def get_real_data(
    response: Response,
    cache: AggregationCache = Depends(get_aggregation_cache),
) -> AgricultureDataResponse:
    """
    Return every sector with its extracted regions.
    """

    return _data_response(cache.get(), response)


@router.get("/real-coordinates", response_model=RealCoordinatesResponse)
def get_real_coordinates(
    response: Response,
    cache: AggregationCache = Depends(get_aggregation_cache),
) -> RealCoordinatesResponse:
    """
    Return only regions built from latitude/longitude points, with a
    bounding box per sector.
    """

    outcome = cache.get()
    success = _mark_failure(outcome, response)
    coordinates = {}
    for key, aggregate in outcome.result.sectors.items():
        point_regions = [region for region in aggregate.regions if region.boundary_method in POINT_BOUNDARY_METHODS]
        if point_regions:
            coordinates[key] = sector_response(aggregate, regions=point_regions, with_bounds=True)
    return RealCoordinatesResponse(
        success=success,
        coordinates=coordinates,
        summary=summary_response(outcome, timestamp=_now(), sectors=coordinates),
        error=outcome.error,
    )


@router.get("/region-details", response_model=RegionDetailsResponse)
def get_region_details(
    country: str | None = Query(default=None, description="Country name to search for"),
    sector: str | None = Query(default=None, description="Optional sector key filter"),
    details_service: RegionDetailsService = Depends(get_region_details_service),
) -> RegionDetailsResponse:
    """
    Return sample records mentioning one country across agriculture files.
    """

    try:
        details = details_service.find(country or "", sector=sector)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StorageError as exc:
        logger.error("Region details lookup failed country=%s error=%s", country, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Agriculture bucket is unavailable.",
        ) from exc

    return RegionDetailsResponse(
        country=details.country,
        sector=details.sector_filter or "all",
        summary=RegionDetailsSummaryResponse(
            total_files=details.total_files,
            total_records=details.total_records,
            found_sectors=list(details.sectors),
            files_scanned=details.files_scanned,
            files_failed=details.files_failed,
            deadline_exceeded=details.deadline_exceeded,
        ),
        sectors={
            key: CountrySectorResponse(name=entry.sector.name, records=entry.records, files=entry.files)
            for key, entry in details.sectors.items()
        },
        data=details.samples,
        search_params=SearchParamsResponse(country=details.country, sector=sector),
    )


@router.get("/sectors", response_model=SectorCatalogResponse)
def list_sectors() -> SectorCatalogResponse:
    return SectorCatalogResponse(sectors=[SectorCatalogEntryResponse.from_domain(sector) for sector in all_sectors()])


@router.post("/cache/refresh", response_model=AgricultureDataResponse)
def refresh_cache(
    response: Response,
    cache: AggregationCache = Depends(get_aggregation_cache),
) -> AgricultureDataResponse:
    """
    Recompute the aggregation now instead of waiting for the TTL.
    """

    return _data_response(cache.refresh(), response)

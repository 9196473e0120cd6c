"""
app/api/routers/domains.py

Domain dataset catalog HTTP endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.schemas.domains import (
    CategorySummaryResponse,
    DatasetSampleResponse,
    DomainMetadataResponse,
    DomainSampleResponse,
)
from app.services.domain_catalog_service import (
    DomainCatalogService,
    UnknownDomainError,
    get_domain_catalog_service,
)
from app.storage import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/domains", tags=["domains"])


def _unavailable(domain: str, exc: StorageError) -> HTTPException:
    logger.error("Domain bucket unavailable domain=%s error=%s", domain, exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Bucket for domain '{domain}' is unavailable.",
    )


@router.get("/{domain}/metadata", response_model=DomainMetadataResponse)
def get_domain_metadata(
    domain: str,
    catalog: DomainCatalogService = Depends(get_domain_catalog_service),
) -> DomainMetadataResponse:
    """
    Summarize a domain bucket by top-level category.
    """

    try:
        metadata = catalog.metadata(domain)
    except UnknownDomainError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StorageError as exc:
        raise _unavailable(domain, exc) from exc

    return DomainMetadataResponse(
        domain=metadata.domain,
        bucket_name=metadata.bucket,
        categories=[CategorySummaryResponse.from_domain(category) for category in metadata.categories],
        total_files=metadata.total_files,
        total_size=metadata.total_size,
    )


@router.get("/{domain}/sample", response_model=DomainSampleResponse)
def get_domain_sample(
    domain: str,
    category: str | None = Query(default=None, description="Optional top-level folder"),
    limit: int | None = Query(default=None, ge=1, description="Number of datasets to preview"),
    catalog: DomainCatalogService = Depends(get_domain_catalog_service),
) -> DomainSampleResponse:
    """
    Preview the newest datasets of a domain.
    """

    try:
        samples = catalog.sample(domain, category=category, limit=limit)
    except UnknownDomainError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StorageError as exc:
        raise _unavailable(domain, exc) from exc

    return DomainSampleResponse(
        domain=domain.strip().lower(),
        category=category,
        count=len(samples),
        samples=[DatasetSampleResponse.from_domain(sample) for sample in samples],
    )

"""
app/schemas/domains.py

Response schemas for domain dataset catalog endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from app.domain.datasets import CategorySummary, DatasetSample
from app.schemas.common import CamelModel


class CategorySummaryResponse(CamelModel):
    category: str
    file_count: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)
    last_updated: datetime | None = None

    @classmethod
    def from_domain(cls, summary: CategorySummary) -> "CategorySummaryResponse":
        return cls(
            category=summary.category,
            file_count=summary.file_count,
            total_size=summary.total_size,
            last_updated=summary.last_updated,
        )


class DomainMetadataResponse(CamelModel):
    success: bool = True
    domain: str
    bucket_name: str
    categories: list[CategorySummaryResponse]
    total_files: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)


class DatasetSampleResponse(CamelModel):
    """
    Preview of one dataset plus a time-limited read URL.
    """

    name: str
    size_bytes: int = Field(..., ge=0)
    updated: datetime | None = None
    content_type: str | None = None
    url: str | None = None
    preview: str
    preview_truncated: bool = False
    error: bool = False

    @classmethod
    def from_domain(cls, sample: DatasetSample) -> "DatasetSampleResponse":
        return cls(
            name=sample.name,
            size_bytes=sample.size_bytes,
            updated=sample.updated_at,
            content_type=sample.content_type,
            url=sample.url,
            preview=sample.preview,
            preview_truncated=sample.preview_truncated,
            error=sample.error,
        )


class DomainSampleResponse(CamelModel):
    success: bool = True
    domain: str
    category: str | None = None
    count: int = Field(..., ge=0)
    samples: list[DatasetSampleResponse]

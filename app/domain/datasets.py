"""
app/domain/datasets.py

Domain dataset catalog models (bucket metadata and file previews).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CategorySummary:
    """
    Objects sharing one first path segment (``general`` for top-level files).
    """

    category: str
    file_count: int
    total_size: int
    last_updated: datetime | None


@dataclass(frozen=True)
class DomainMetadata:
    domain: str
    bucket: str
    categories: list[CategorySummary]
    total_files: int
    total_size: int


@dataclass(frozen=True)
class DatasetSample:
    """
    One previewed object. ``error`` is set when the preview or the read URL
    could not be produced; the item is still returned.
    """

    name: str
    size_bytes: int
    updated_at: datetime | None
    content_type: str | None
    url: str | None
    preview: str
    preview_truncated: bool = False
    error: bool = False

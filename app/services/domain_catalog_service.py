"""
app/services/domain_catalog_service.py

Read-only catalog over the Earth-observation domain buckets: per-category
metadata and small previews of recent datasets.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Mapping

from app.config import DomainSampleSettings, get_domain_sample_settings, get_storage_settings
from app.domain.agriculture import RemoteObject
from app.domain.datasets import CategorySummary, DatasetSample, DomainMetadata
from app.storage import ObjectStore, StorageError
from app.storage.factory import get_object_store

logger = logging.getLogger(__name__)

GENERAL_CATEGORY = "general"
PREFERRED_EXTENSIONS: tuple[str, ...] = (".csv", ".json", ".geojson")
CSV_PREVIEW_LINES = 5
TEXT_PREVIEW_CHARS = 500
NO_PREVIEW = "No preview available"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MB = 1024 * 1024


class UnknownDomainError(ValueError):
    """
    Raised when a domain has no bucket mapping.
    """


def category_of(name: str) -> str:
    parts = name.split("/")
    return parts[0] if len(parts) > 1 and parts[0] else GENERAL_CATEGORY


def _sort_key(obj: RemoteObject) -> datetime:
    return obj.updated_at or _EPOCH


class DomainCatalogService:
    """
    Lists and previews objects from the bucket mapped to each domain.
    """

    def __init__(
        self,
        *,
        store: ObjectStore,
        domain_buckets: Mapping[str, str],
        settings: DomainSampleSettings,
    ) -> None:
        self._store = store
        self._domain_buckets = {domain.lower(): bucket for domain, bucket in domain_buckets.items()}
        self._settings = settings

    @property
    def domains(self) -> list[str]:
        return sorted(self._domain_buckets)

    def bucket_for(self, domain: str) -> str:
        bucket = self._domain_buckets.get(domain.strip().lower())
        if bucket is None:
            allowed = ", ".join(self.domains)
            raise UnknownDomainError(f"No bucket mapped for domain '{domain}'. Allowed domains: {allowed}.")
        return bucket

    def metadata(self, domain: str) -> DomainMetadata:
        """
        Group the domain's objects by first path segment.
        """

        bucket = self.bucket_for(domain)
        objects = self._store.list_objects(bucket)

        grouped: dict[str, list[RemoteObject]] = {}
        for obj in objects:
            grouped.setdefault(category_of(obj.name), []).append(obj)

        categories: list[CategorySummary] = []
        for category, members in grouped.items():
            stamps = [obj.updated_at for obj in members if obj.updated_at is not None]
            categories.append(
                CategorySummary(
                    category=category,
                    file_count=len(members),
                    total_size=sum(obj.size_bytes for obj in members),
                    last_updated=max(stamps) if stamps else None,
                )
            )

        return DomainMetadata(
            domain=domain.strip().lower(),
            bucket=bucket,
            categories=categories,
            total_files=len(objects),
            total_size=sum(category.total_size for category in categories),
        )

    def select_samples(self, objects: list[RemoteObject], *, category: str | None, limit: int) -> list[RemoteObject]:
        """
        Preferred formats under the preferred size cap win; otherwise any file
        under the smaller cap. Newest first.
        """

        settings = self._settings
        if category:
            prefix = f"{category.strip('/')}/"
            objects = [obj for obj in objects if obj.name.startswith(prefix)]

        preferred = [
            obj
            for obj in objects
            if obj.name.lower().endswith(PREFERRED_EXTENSIONS) and obj.size_bytes < settings.preferred_max_bytes
        ]
        pool = preferred or [obj for obj in objects if obj.size_bytes < settings.other_max_bytes]
        pool.sort(key=_sort_key, reverse=True)
        return pool[: max(0, limit)]

    def sample(self, domain: str, *, category: str | None = None, limit: int | None = None) -> list[DatasetSample]:
        """
        Preview up to *limit* recent datasets of *domain*.

        Listing failures propagate; a failure on one item only flags that item.
        """

        bucket = self.bucket_for(domain)
        settings = self._settings
        limit = settings.default_limit if limit is None else min(max(1, limit), settings.max_limit)
        objects = self._store.list_objects(bucket)
        return [self._sample_item(bucket, obj) for obj in self.select_samples(objects, category=category, limit=limit)]

    def _sample_item(self, bucket: str, obj: RemoteObject) -> DatasetSample:
        settings = self._settings
        url: str | None = None
        errors: list[str] = []
        try:
            url = self._store.signed_url(bucket, obj.name, expires_in_seconds=settings.signed_url_ttl_seconds)
        except StorageError as exc:
            logger.warning("Read URL unavailable bucket=%s object=%s error=%s", bucket, obj.name, exc)
            errors.append(str(exc))

        try:
            preview = self._preview(bucket, obj)
        except StorageError as exc:
            logger.warning("Preview unavailable bucket=%s object=%s error=%s", bucket, obj.name, exc)
            errors.append(str(exc))
            preview = f"Unable to generate preview: {exc}"

        truncated = len(preview) > settings.preview_max_chars
        if truncated:
            preview = preview[: settings.preview_max_chars]

        return DatasetSample(
            name=obj.name,
            size_bytes=obj.size_bytes,
            updated_at=obj.updated_at,
            content_type=obj.content_type,
            url=url,
            preview=preview or NO_PREVIEW,
            preview_truncated=truncated,
            error=bool(errors),
        )

    def _preview(self, bucket: str, obj: RemoteObject) -> str:
        settings = self._settings
        if obj.size_bytes >= settings.preview_max_object_bytes:
            return f"Large file ({obj.size_bytes / _MB:.2f} MB). Use the read URL to download."

        raw = b"".join(self._store.read_bytes(bucket, obj.name, max_bytes=settings.preview_read_bytes))
        content = raw.decode("utf-8", errors="replace").lstrip("\ufeff")
        if obj.name.lower().endswith(".csv"):
            return "\n".join(content.split("\n")[:CSV_PREVIEW_LINES])
        if not content:
            return ""
        return content[:TEXT_PREVIEW_CHARS] + "..."


@lru_cache(maxsize=1)
def get_domain_catalog_service() -> DomainCatalogService:
    return DomainCatalogService(
        store=get_object_store(),
        domain_buckets=get_storage_settings().domain_buckets,
        settings=get_domain_sample_settings(),
    )

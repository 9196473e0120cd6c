"""
app/storage/factory.py

Backend selection for the process-wide object store.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from app.config import get_external_http_settings, get_storage_settings
from app.storage.base import ObjectStore
from app.storage.gcs_store import GCSObjectStore
from app.storage.public_store import PublicBucketStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    """
    Return the cached object store selected by ``STORAGE_BACKEND``.
    """

    settings = get_storage_settings()
    if settings.backend == "public":
        store: ObjectStore = PublicBucketStore(
            http_settings=get_external_http_settings(),
            base_url=settings.public_base_url,
        )
    else:
        store = GCSObjectStore(
            settings=settings,
            timeout_seconds=get_external_http_settings().timeout_seconds,
        )
    logger.info("Object store initialized backend=%s", store.backend)
    return store

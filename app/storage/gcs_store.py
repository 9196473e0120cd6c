"""
app/storage/gcs_store.py

Authenticated Google Cloud Storage backend.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Iterator

from google.api_core import exceptions as gcs_exceptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from app.config import StorageSettings
from app.domain.agriculture import RemoteObject
from app.storage.base import DEFAULT_CHUNK_SIZE, ObjectStore, StorageError

if TYPE_CHECKING:
    from app.deadline import Deadline

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def build_credentials(settings: StorageSettings) -> service_account.Credentials | None:
    """
    Resolve service-account credentials from inline JSON or a key file.

    Returns None when neither is configured so the client falls back to
    application default credentials.
    """

    if settings.credentials_json:
        try:
            info = json.loads(settings.credentials_json)
        except ValueError as exc:
            raise StorageError("GOOGLE_APPLICATION_CREDENTIALS_JSON is not valid JSON.") from exc
        return service_account.Credentials.from_service_account_info(info)
    if settings.credentials_file:
        return service_account.Credentials.from_service_account_file(settings.credentials_file)
    return None


class GCSObjectStore(ObjectStore):
    """
    Object store backed by ``google.cloud.storage.Client``.
    """

    backend = "gcs"

    def __init__(
        self,
        *,
        client: storage.Client | None = None,
        settings: StorageSettings | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if client is None:
            settings = settings or StorageSettings()
            try:
                credentials = build_credentials(settings)
                client = storage.Client(project=settings.project_id, credentials=credentials)
            except (GoogleAuthError, OSError, ValueError) as exc:
                raise StorageError(f"Could not create storage client: {exc}") from exc
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._chunk_size = max(1, chunk_size)

    def _timeout(self, deadline: Deadline | None) -> float:
        return deadline.timeout(self._timeout_seconds) if deadline is not None else self._timeout_seconds

    def list_objects(self, container: str, *, deadline: Deadline | None = None) -> list[RemoteObject]:
        if deadline is not None:
            deadline.check(f"listing {container}")
        try:
            blobs = self._client.list_blobs(container, timeout=self._timeout(deadline))
            objects = [self._to_remote_object(blob) for blob in blobs]
        except (gcs_exceptions.GoogleAPIError, GoogleAuthError) as exc:
            logger.error("Bucket listing failed bucket=%s error=%s", container, exc)
            raise StorageError(f"Could not list bucket {container}: {exc}") from exc
        logger.info("Bucket listed bucket=%s objects=%s", container, len(objects))
        return objects

    def read_bytes(
        self,
        container: str,
        name: str,
        *,
        max_bytes: int,
        start: int = 0,
        deadline: Deadline | None = None,
    ) -> Iterator[bytes]:
        blob = self._client.bucket(container).blob(name)
        offset = max(0, start)
        end_exclusive = offset + max(0, max_bytes)
        while offset < end_exclusive:
            if deadline is not None:
                deadline.check(f"reading {name}")
            requested = min(self._chunk_size, end_exclusive - offset)
            try:
                chunk = blob.download_as_bytes(
                    start=offset,
                    end=offset + requested - 1,
                    timeout=self._timeout(deadline),
                )
            except gcs_exceptions.RequestRangeNotSatisfiable:
                return
            except (gcs_exceptions.GoogleAPIError, GoogleAuthError) as exc:
                raise StorageError(f"Could not read {container}/{name}: {exc}") from exc
            if not chunk:
                return
            yield chunk
            offset += len(chunk)
            if len(chunk) < requested:
                return

    def signed_url(self, container: str, name: str, *, expires_in_seconds: int) -> str:
        blob = self._client.bucket(container).blob(name)
        try:
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=expires_in_seconds),
                method="GET",
            )
        except (GoogleAuthError, AttributeError, ValueError) as exc:
            # token-only credentials cannot sign
            raise StorageError(f"Could not sign URL for {container}/{name}: {exc}") from exc

    @staticmethod
    def _to_remote_object(blob: Any) -> RemoteObject:
        return RemoteObject(
            name=blob.name,
            size_bytes=int(blob.size or 0),
            updated_at=blob.updated,
            content_type=blob.content_type,
        )

"""
app/storage/public_store.py

Anonymous backend for publicly readable buckets, using the Cloud Storage JSON
API over plain HTTP.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import quote

import requests

from app.config import ExternalHTTPSettings
from app.domain.agriculture import RemoteObject
from app.storage.base import DEFAULT_CHUNK_SIZE, ObjectStore, StorageError

if TYPE_CHECKING:
    from app.deadline import Deadline

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
DEFAULT_BASE_URL = "https://storage.googleapis.com"
LIST_PAGE_SIZE = 1000


def parse_rfc3339(value: str | None) -> datetime | None:
    """
    Parse a JSON API timestamp into a timezone-aware datetime.
    """

    if not value:
        return None
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


class PublicBucketStore(ObjectStore):
    """
    Read-only object store for buckets that allow ``allUsers`` read access.
    """

    backend = "public"

    def __init__(
        self,
        *,
        http_settings: ExternalHTTPSettings,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._min_request_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_monotonic: float = 0.0
        self._rate_lock = threading.Lock()
        self._chunk_size = max(1, chunk_size)

    # ------------------------------------------------------------------
    # ObjectStore
    # ------------------------------------------------------------------

    def list_objects(self, container: str, *, deadline: Deadline | None = None) -> list[RemoteObject]:
        url = f"{self._base_url}/storage/v1/b/{quote(container, safe='')}/o"
        params: dict[str, Any] = {"maxResults": LIST_PAGE_SIZE}
        objects: list[RemoteObject] = []
        while True:
            if deadline is not None:
                deadline.check(f"listing {container}")
            response = self._request(method="GET", url=url, params=params, deadline=deadline)
            try:
                payload = response.json()
            except ValueError as exc:
                raise StorageError(f"Listing for {container} was not valid JSON.") from exc
            objects.extend(self._to_remote_object(item) for item in payload.get("items", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
            params = {"maxResults": LIST_PAGE_SIZE, "pageToken": page_token}
        logger.info("Public bucket listed bucket=%s objects=%s", container, len(objects))
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
        if max_bytes <= 0:
            return
        if deadline is not None:
            deadline.check(f"reading {name}")
        offset = max(0, start)
        response = self._request(
            method="GET",
            url=self.object_url(container, name),
            headers={"Range": f"bytes={offset}-{offset + max_bytes - 1}"},
            deadline=deadline,
            stream=True,
            allowed_statuses={416},
        )
        if response.status_code == 416:
            response.close()
            return
        remaining = max_bytes
        try:
            for chunk in response.iter_content(chunk_size=self._chunk_size):
                if not chunk:
                    continue
                if deadline is not None:
                    deadline.check(f"reading {name}")
                piece = chunk[:remaining]
                remaining -= len(piece)
                yield piece
                if remaining <= 0:
                    break
        except requests.RequestException as exc:
            raise StorageError(f"Could not read {container}/{name}: {exc}") from exc
        finally:
            response.close()

    def signed_url(self, container: str, name: str, *, expires_in_seconds: int) -> str:
        # public objects need no signature
        return self.object_url(container, name)

    def object_url(self, container: str, name: str) -> str:
        return f"{self._base_url}/{quote(container, safe='')}/{quote(name)}"

    # ------------------------------------------------------------------
    # HTTP mechanics
    # ------------------------------------------------------------------

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        deadline: Deadline | None = None,
        stream: bool = False,
        allowed_statuses: set[int] | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with rate limiting and exponential backoff.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            if deadline is not None:
                deadline.check(f"requesting {url}")
            self._apply_rate_limit()
            timeout = deadline.timeout(self._timeout_seconds) if deadline is not None else self._timeout_seconds
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    timeout=timeout,
                    stream=stream,
                )
                if allowed_statuses and response.status_code in allowed_statuses:
                    return response
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = None
                if exc.response is not None:
                    status_code = exc.response.status_code
                    exc.response.close()
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error("Storage request failed status=%s url=%s error=%s", status_code, url, exc)
                    raise StorageError(f"Storage request failed with status {status_code}.") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            remaining = deadline.remaining() if deadline is not None else None
            if remaining is not None and remaining <= backoff_seconds:
                break
            logger.warning(
                "Storage request retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error("Storage request exhausted retries url=%s error=%s", url, last_error)
        raise StorageError(f"Storage request failed after retries: {last_error}") from last_error

    def _apply_rate_limit(self) -> None:
        if self._min_request_interval_seconds <= 0:
            return

        with self._rate_lock:
            now = time.monotonic()
            elapsed = now - self._last_request_monotonic
            remaining = self._min_request_interval_seconds - elapsed
            if remaining > 0:
                time.sleep(remaining)
            self._last_request_monotonic = time.monotonic()

    @staticmethod
    def _to_remote_object(item: dict[str, Any]) -> RemoteObject:
        try:
            size = int(item.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return RemoteObject(
            name=str(item.get("name", "")),
            size_bytes=size,
            updated_at=parse_rfc3339(item.get("updated")),
            content_type=item.get("contentType"),
        )

"""
app/storage/base.py

Object storage abstraction used by the extraction pipeline and the domain
catalog.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterator

from app.domain.agriculture import RemoteObject

if TYPE_CHECKING:
    from app.deadline import Deadline

DEFAULT_CHUNK_SIZE = 256 * 1024


class StorageError(RuntimeError):
    """
    Raised when an object cannot be listed, read or signed.
    """


class ObjectStore(ABC):
    """
    Read-only view over named containers (buckets) of objects.
    """

    backend: str

    @abstractmethod
    def list_objects(self, container: str, *, deadline: Deadline | None = None) -> list[RemoteObject]:
        """
        Enumerate every object in *container*.
        """

    @abstractmethod
    def read_bytes(
        self,
        container: str,
        name: str,
        *,
        max_bytes: int,
        start: int = 0,
        deadline: Deadline | None = None,
    ) -> Iterator[bytes]:
        """
        Yield at most *max_bytes* of the object starting at byte *start*.

        Chunks are fetched lazily; a consumer that stops iterating stops the
        download.
        """

    @abstractmethod
    def signed_url(self, container: str, name: str, *, expires_in_seconds: int) -> str:
        """
        Return a time-limited GET URL for one object.
        """

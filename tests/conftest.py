"""
tests/conftest.py

Shared in-memory fakes: an object store and a manually advanced clock.
No test touches the network.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest

from app.domain.agriculture import RemoteObject
from app.storage.base import ObjectStore, StorageError

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeObjectStore(ObjectStore):
    """
    Dict-backed store. ``fail_reads`` and ``fail_listing`` inject
    ``StorageError``; ``on_read`` runs before each read (e.g. to move a clock).
    """

    backend = "fake"

    def __init__(self) -> None:
        self.containers: dict[str, dict[str, tuple[bytes, datetime | None]]] = {}
        self.fail_reads: set[str] = set()
        self.fail_signing: set[str] = set()
        self.fail_listing = False
        self.on_read = None
        self.read_log: list[str] = []
        self.list_calls = 0

    def put(
        self,
        container: str,
        name: str,
        data: bytes | str,
        *,
        updated_at: datetime | None = None,
    ) -> None:
        payload = data.encode("utf-8") if isinstance(data, str) else data
        self.containers.setdefault(container, {})[name] = (payload, updated_at or BASE_TIME)

    def list_objects(self, container, *, deadline=None) -> list[RemoteObject]:
        self.list_calls += 1
        if deadline is not None:
            deadline.check(f"listing {container}")
        if self.fail_listing:
            raise StorageError(f"listing {container} failed")
        return [
            RemoteObject(name=name, size_bytes=len(data), updated_at=updated, content_type=None)
            for name, (data, updated) in self.containers.get(container, {}).items()
        ]

    def read_bytes(self, container, name, *, max_bytes, start=0, deadline=None) -> Iterator[bytes]:
        if self.on_read is not None:
            self.on_read(name)
        if deadline is not None:
            deadline.check(f"reading {name}")
        self.read_log.append(name)
        if name in self.fail_reads:
            raise StorageError(f"read {name} failed")
        data, _ = self.containers[container][name]
        window = data[start : start + max_bytes]
        for offset in range(0, len(window), 7):
            yield window[offset : offset + 7]

    def signed_url(self, container, name, *, expires_in_seconds) -> str:
        if name in self.fail_signing:
            raise StorageError(f"cannot sign {name}")
        return f"https://signed.example/{container}/{name}?ttl={expires_in_seconds}"


@pytest.fixture()
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def wall_clock():
    state = {"now": BASE_TIME}

    def _now() -> datetime:
        state["now"] = state["now"] + timedelta(seconds=1)
        return state["now"]

    return _now

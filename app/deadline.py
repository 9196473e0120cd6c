"""
app/deadline.py

Explicit deadline carried through listing, download and parsing so a
caller-specified time budget is honored end to end.
"""

from __future__ import annotations

import time
from typing import Callable

from app.storage.base import StorageError


class DeadlineExceeded(StorageError):
    """
    Raised when a deadline expires before an operation could start.
    """


class Deadline:
    """
    Absolute point on a monotonic clock.

    ``Deadline(None)`` never expires.
    """

    def __init__(
        self,
        budget_seconds: float | None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._expires_at = None if budget_seconds is None else clock() + max(0.0, budget_seconds)

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left, ``0.0`` once expired, None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def check(self, operation: str) -> None:
        if self.expired():
            raise DeadlineExceeded(f"Deadline exceeded before {operation}.")

    def timeout(self, default: float) -> float:
        """
        Per-call I/O timeout: *default* capped by the time left.
        """

        remaining = self.remaining()
        if remaining is None:
            return default
        return max(0.001, min(default, remaining))

"""
app/logging_utils.py

Process-wide logging setup and structured event lines for pipeline
observability (skipped files, skipped region groups, cache transitions).
"""

from __future__ import annotations

import json
import logging
from typing import Any

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level_name: str = "INFO") -> None:
    """
    Configure root logging once for the API process.

    Unknown level names fall back to INFO.
    """

    logging.basicConfig(
        level=getattr(logging, level_name.strip().upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Nothing is serialized when *level* is disabled for *logger*.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))

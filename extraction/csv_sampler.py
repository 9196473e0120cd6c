"""
extraction/csv_sampler.py

Bounded CSV sampling from a byte stream.

Parsing is RFC 4180 aware (quoted fields may hold commas, doubled quotes and
newlines). The byte cap is applied while streaming, and reading stops as soon
as the row limit is reached, so memory stays bounded for very large objects.
"""

from __future__ import annotations

import codecs
import csv
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from app.domain.agriculture import CSVSample, ParsedRow

DEFAULT_ROW_LIMIT = 200
DEFAULT_MAX_BYTES = 4 * 1024 * 1024

# Yielded after the last complete line of a capped stream. csv.reader returns
# it as a row of its own when every quoted field was closed, or folds it into
# the last field of a record the cap cut inside quotes.
_CUT_MARKER = "\ue000cut\ue000"


@dataclass
class _StreamState:
    bytes_read: int = 0
    truncated: bool = False


def _iter_text_lines(
    chunks: Iterable[bytes],
    *,
    max_bytes: int,
    state: _StreamState,
) -> Iterator[str]:
    """
    Decode *chunks* as UTF-8 and yield newline-terminated lines.

    At most *max_bytes* bytes are consumed. When the cap cuts the stream, the
    trailing partial line is dropped, ``state.truncated`` is set and the cut
    marker is yielded last.
    """

    decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="replace")
    pending = ""
    for chunk in chunks:
        if not chunk:
            continue
        room = max_bytes - state.bytes_read
        if room <= 0:
            state.truncated = True
            break
        if len(chunk) > room:
            chunk = chunk[:room]
            state.truncated = True
        state.bytes_read += len(chunk)
        pending += decoder.decode(chunk)
        *complete, pending = pending.split("\n")
        for line in complete:
            yield line + "\n"
        if state.truncated:
            break

    if state.truncated:
        yield _CUT_MARKER
        return
    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending


def unique_headers(raw_headers: Sequence[str]) -> tuple[str, ...]:
    """
    Trim headers and suffix duplicates with ``.1``, ``.2`` ... so every
    header is a distinct key.
    """

    seen: dict[str, int] = {}
    headers: list[str] = []
    for raw in raw_headers:
        header = raw.strip()
        count = seen.get(header, 0)
        seen[header] = count + 1
        headers.append(header if count == 0 else f"{header}.{count}")
    return tuple(headers)


def zip_row(headers: Sequence[str], values: Sequence[str]) -> ParsedRow:
    """
    Pair *values* with *headers*. Missing fields become ``""`` and extra
    fields are dropped, so the row always has one key per header.
    """

    return {
        header: (values[index].strip() if index < len(values) else "")
        for index, header in enumerate(headers)
    }


def _is_cut_marker(values: Sequence[str]) -> bool:
    return bool(values) and values[-1].endswith(_CUT_MARKER)


def sample_csv(
    chunks: Iterable[bytes],
    *,
    row_limit: int = DEFAULT_ROW_LIMIT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> CSVSample:
    """
    Parse at most *row_limit* rows from a UTF-8 CSV byte stream.

    Never raises on malformed input. A stream without a readable header row
    yields an empty sample.
    """

    row_limit = max(0, row_limit)
    state = _StreamState()
    reader = csv.reader(_iter_text_lines(chunks, max_bytes=max(1, max_bytes), state=state))

    headers: tuple[str, ...] = ()
    try:
        for raw_headers in reader:
            if _is_cut_marker(raw_headers):
                break
            if any(value.strip() for value in raw_headers):
                headers = unique_headers(raw_headers)
                break
    except csv.Error:
        return CSVSample(headers=(), rows=[], bytes_read=state.bytes_read, truncated=True)
    if not headers:
        return CSVSample(headers=(), rows=[], bytes_read=state.bytes_read, truncated=state.truncated)

    rows: list[ParsedRow] = []
    while len(rows) < row_limit:
        try:
            values = next(reader)
        except StopIteration:
            break
        except csv.Error:
            # Oversized field; nothing after it can be aligned reliably.
            return CSVSample(headers=headers, rows=rows, bytes_read=state.bytes_read, truncated=True)
        if _is_cut_marker(values):
            # End of a capped stream. A marker fused into a field means the
            # cap cut that record inside a quoted field.
            break
        if not any(value.strip() for value in values):
            continue
        rows.append(zip_row(headers, values))

    return CSVSample(
        headers=headers,
        rows=rows,
        bytes_read=state.bytes_read,
        truncated=state.truncated,
    )


def sample_csv_bytes(
    data: bytes,
    *,
    row_limit: int = DEFAULT_ROW_LIMIT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> CSVSample:
    """Convenience wrapper for an in-memory payload."""
    return sample_csv([data], row_limit=row_limit, max_bytes=max_bytes)

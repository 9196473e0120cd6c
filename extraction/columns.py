"""
extraction/columns.py

Column sniffing: guess which CSV headers carry geographic identifiers.
"""

from __future__ import annotations

import re
from typing import Sequence

from app.domain.agriculture import ColumnRoles

LAT_TERMS: tuple[str, ...] = ("lat", "latitude")
LNG_TERMS: tuple[str, ...] = ("lon", "lng", "longitude")
COUNTRY_TERMS: tuple[str, ...] = ("country", "area", "region")
VALUE_HEADERS: frozenset[str] = frozenset({"value", "production"})

# Identifier-code columns (FAO "Area Code", "Area Code (M49)") sit before the
# name column and must not take the country role.
COUNTRY_EXCLUDED_WORDS: frozenset[str] = frozenset(
    {"code", "codes", "flag", "unit", "m49", "iso", "iso2", "iso3"}
)

_WORD_PATTERN = re.compile(r"[a-z0-9]+")


def header_words(header: str) -> list[str]:
    """
    Split a header into lower-case alphanumeric words.

    ``"Area Code (M49)"`` becomes ``["area", "code", "m49"]``; camel case is
    not split.
    """

    return _WORD_PATTERN.findall(header.lower())


def _matches(words: Sequence[str], terms: Sequence[str]) -> bool:
    return any(word.startswith(term) for word in words for term in terms)


def sniff_columns(headers: Sequence[str]) -> ColumnRoles:
    """
    Return the first header, in source order, matching each role.

    Matching is case-insensitive on header word prefixes. A header may take
    more than one role only if it matches both vocabularies.
    """

    country_column: str | None = None
    lat_column: str | None = None
    lng_column: str | None = None
    value_column: str | None = None

    for header in headers:
        words = header_words(header)
        if not words:
            continue
        if lat_column is None and _matches(words, LAT_TERMS):
            lat_column = header
        if lng_column is None and _matches(words, LNG_TERMS):
            lng_column = header
        if (
            country_column is None
            and _matches(words, COUNTRY_TERMS)
            and not COUNTRY_EXCLUDED_WORDS.intersection(words)
        ):
            country_column = header
        if value_column is None and header.strip().lower() in VALUE_HEADERS:
            value_column = header

    return ColumnRoles(
        country_column=country_column,
        lat_column=lat_column,
        lng_column=lng_column,
        value_column=value_column,
    )

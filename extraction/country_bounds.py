"""
extraction/country_bounds.py

Static country bounding boxes and the country-name resolver used to attach
them to CSV rows.

Boxes are coarse rectangles meant for map display; the nominal area attached
to each entry is a display figure, not a measurement.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from app.domain.agriculture import Coordinate

# (name, min_lat, min_lng, max_lat, max_lng, nominal_area). Order matters for
# the containment fallback in find_country_bounds.
_COUNTRY_BOXES: tuple[tuple[str, float, float, float, float, int], ...] = (
    ("United States of America", 25.0, -125.0, 49.0, -66.0, 180000),
    ("China", 18.0, 73.0, 53.0, 135.0, 160000),
    ("India", 6.0, 68.0, 37.0, 97.0, 85000),
    ("Brazil", -34.0, -74.0, 5.0, -32.0, 140000),
    ("Argentina", -55.0, -73.0, -22.0, -53.0, 95000),
    ("Australia", -44.0, 113.0, -10.0, 154.0, 120000),
    ("Canada", 41.0, -141.0, 83.0, -52.0, 200000),
    ("Russian Federation", 41.0, 19.0, 82.0, 169.0, 250000),
    ("Ukraine", 44.0, 22.0, 52.0, 40.0, 35000),
    ("France", 41.0, -5.0, 51.0, 10.0, 25000),
    ("Germany", 47.0, 5.0, 55.0, 15.0, 20000),
    ("Indonesia", -11.0, 95.0, 6.0, 141.0, 45000),
    ("Turkey", 35.0, 25.0, 42.0, 45.0, 30000),
    ("Mexico", 14.0, -118.0, 33.0, -86.0, 55000),
    ("Pakistan", 23.0, 60.0, 37.0, 78.0, 40000),
    ("Nigeria", 4.0, 2.0, 14.0, 15.0, 35000),
    ("Bangladesh", 20.0, 88.0, 26.0, 93.0, 15000),
    ("Vietnam", 8.0, 102.0, 24.0, 110.0, 18000),
    ("Philippines", 4.0, 116.0, 21.0, 127.0, 22000),
    ("Thailand", 5.0, 97.0, 21.0, 106.0, 24000),
    ("Myanmar", 9.0, 92.0, 29.0, 102.0, 32000),
    ("Ethiopia", 3.0, 33.0, 15.0, 48.0, 45000),
    ("Egypt", 22.0, 25.0, 32.0, 35.0, 40000),
    ("South Africa", -35.0, 16.0, -22.0, 33.0, 55000),
    ("Kenya", -5.0, 34.0, 5.0, 42.0, 28000),
    ("Tanzania", -12.0, 29.0, -1.0, 41.0, 42000),
    ("Morocco", 27.0, -13.0, 36.0, -1.0, 32000),
    ("Algeria", 19.0, -9.0, 37.0, 12.0, 80000),
    ("Sudan", 8.0, 21.0, 22.0, 39.0, 70000),
    ("Mali", 10.0, -12.0, 25.0, 5.0, 55000),
    ("Burkina Faso", 9.0, -6.0, 15.0, 3.0, 25000),
    ("Ghana", 4.0, -4.0, 12.0, 2.0, 18000),
    ("Côte d'Ivoire", 4.0, -9.0, 11.0, -2.0, 20000),
    ("United Kingdom", 49.0, -8.0, 61.0, 2.0, 12000),
    ("Italy", 36.0, 6.0, 47.0, 19.0, 18000),
    ("Spain", 35.0, -10.0, 44.0, 5.0, 28000),
    ("Poland", 49.0, 14.0, 55.0, 24.0, 22000),
    ("Romania", 43.0, 20.0, 48.0, 30.0, 18000),
    ("Kazakhstan", 40.0, 46.0, 56.0, 87.0, 120000),
    ("Uzbekistan", 37.0, 56.0, 46.0, 73.0, 25000),
    ("Iran", 25.0, 44.0, 40.0, 64.0, 65000),
    ("Afghanistan", 29.0, 60.0, 38.0, 75.0, 35000),
    ("Nepal", 26.0, 80.0, 31.0, 88.0, 8000),
    ("Sri Lanka", 5.0, 79.0, 10.0, 82.0, 4000),
    ("Cambodia", 10.0, 102.0, 15.0, 108.0, 12000),
    ("Laos", 13.0, 100.0, 23.0, 108.0, 15000),
    ("Mongolia", 41.0, 87.0, 52.0, 120.0, 85000),
    ("Japan", 30.0, 129.0, 46.0, 146.0, 22000),
    ("South Korea", 33.0, 125.0, 39.0, 130.0, 6000),
    ("North Korea", 37.0, 124.0, 43.0, 131.0, 8000),
    ("Chile", -56.0, -76.0, -17.0, -66.0, 45000),
    ("Peru", -19.0, -82.0, 0.0, -68.0, 65000),
    ("Colombia", -5.0, -79.0, 13.0, -66.0, 52000),
    ("Venezuela", 0.0, -74.0, 13.0, -59.0, 48000),
    ("Ecuador", -5.0, -81.0, 2.0, -75.0, 15000),
    ("Bolivia", -23.0, -70.0, -9.0, -57.0, 55000),
    ("Paraguay", -28.0, -63.0, -19.0, -54.0, 22000),
    ("Uruguay", -35.0, -58.0, -30.0, -53.0, 8000),
    ("New Zealand", -47.0, 166.0, -34.0, 179.0, 16000),
)

COUNTRY_ALIASES: dict[str, str] = {
    "usa": "United States of America",
    "us": "United States of America",
    "u.s.": "United States of America",
    "united states": "United States of America",
    "america": "United States of America",
    "uk": "United Kingdom",
    "great britain": "United Kingdom",
    "united kingdom of great britain and northern ireland": "United Kingdom",
    "russia": "Russian Federation",
    "viet nam": "Vietnam",
    "türkiye": "Turkey",
    "turkiye": "Turkey",
    "cote d'ivoire": "Côte d'Ivoire",
    "ivory coast": "Côte d'Ivoire",
    "lao people's democratic republic": "Laos",
    "republic of korea": "South Korea",
    "democratic people's republic of korea": "North Korea",
    "united republic of tanzania": "Tanzania",
}

_WORD_PATTERN = re.compile(r"[^\W_]+")


@dataclass(frozen=True)
class CountryBounds:
    name: str
    polygon: tuple[Coordinate, ...]
    area: float


def _box_ring(min_lat: float, min_lng: float, max_lat: float, max_lng: float) -> tuple[Coordinate, ...]:
    return (
        (min_lat, min_lng),
        (min_lat, max_lng),
        (max_lat, max_lng),
        (max_lat, min_lng),
        (min_lat, min_lng),
    )


COUNTRY_BOUNDS: dict[str, CountryBounds] = {
    name: CountryBounds(
        name=name,
        polygon=_box_ring(min_lat, min_lng, max_lat, max_lng),
        area=float(area),
    )
    for name, min_lat, min_lng, max_lat, max_lng, area in _COUNTRY_BOXES
}


def normalize_country_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def _words(name: str) -> tuple[str, ...]:
    return tuple(_WORD_PATTERN.findall(name.casefold()))


def _contains_words(haystack: tuple[str, ...], needle: tuple[str, ...]) -> bool:
    if not needle or len(needle) > len(haystack):
        return False
    width = len(needle)
    return any(haystack[start:start + width] == needle for start in range(len(haystack) - width + 1))


_NORMALIZED_LOOKUP: dict[str, CountryBounds] = {
    normalize_country_name(name): bounds for name, bounds in COUNTRY_BOUNDS.items()
}
_WORDS_LOOKUP: tuple[tuple[tuple[str, ...], CountryBounds], ...] = tuple(
    (_words(name), bounds) for name, bounds in COUNTRY_BOUNDS.items()
)


def find_country_bounds(name: str) -> CountryBounds | None:
    """
    Resolve *name* to a lookup entry.

    Exact (case-insensitive) match wins, then the alias table, then the first
    entry in table order whose word sequence contains, or is contained by,
    the input's word sequence. Containment works on whole words, so
    "Somalia" never resolves to "Mali"; "South Sudan" still resolves to
    "Sudan".
    """

    normalized = normalize_country_name(name)
    if not normalized:
        return None

    exact = _NORMALIZED_LOOKUP.get(normalized)
    if exact is not None:
        return exact

    alias = COUNTRY_ALIASES.get(normalized)
    if alias is not None:
        return COUNTRY_BOUNDS[alias]

    words = _words(normalized)
    for entry_words, bounds in _WORDS_LOOKUP:
        if _contains_words(entry_words, words) or _contains_words(words, entry_words):
            return bounds
    return None


def country_matches(candidate: str, query: str) -> bool:
    """
    True when a CSV country value refers to the queried country.

    Both sides resolving to the same lookup entry counts as a match, so
    "USA" matches "United States of America". Otherwise whole-word
    containment in either direction decides.
    """

    if not candidate.strip() or not query.strip():
        return False
    if normalize_country_name(candidate) == normalize_country_name(query):
        return True

    candidate_bounds = find_country_bounds(candidate)
    query_bounds = find_country_bounds(query)
    if candidate_bounds is not None and candidate_bounds is query_bounds:
        return True

    candidate_words = _words(candidate)
    query_words = _words(query)
    return _contains_words(candidate_words, query_words) or _contains_words(query_words, candidate_words)

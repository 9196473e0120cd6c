"""
extraction/aggregator.py

Region aggregation: turn sampled CSV rows into named polygons for one sector.

Two paths exist:

- point path, when the file has latitude and longitude columns: rows are
  grouped by region name and each group's points are enclosed by a hull or
  bounding box (see ``extraction.boundary``);
- country path, when only a country column exists: rows are grouped by the
  resolved lookup entry and get that entry's fixed rectangle.

No statistic is invented. Values that are not derived from the rows are
reported as placeholders.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from app.domain.agriculture import (
    ColumnRoles,
    Coordinate,
    Measurement,
    ParsedRow,
    Region,
    RegionProperties,
    Sector,
)
from app.logging_utils import log_event
from extraction.boundary import HULL_POINT_THRESHOLD, DegeneratePolygonError, build_boundary, polygon_area
from extraction.country_bounds import CountryBounds, find_country_bounds

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 30
UNKNOWN_REGION = "Unknown Region"
AGGREGATE_AREA_NAMES: frozenset[str] = frozenset({"world"})
MIN_COUNTRY_NAME_LENGTH = 3
REGION_NAME_FALLBACK_HEADERS: tuple[str, ...] = ("Country", "Area", "Region")


@dataclass
class _Group:
    key: str
    first_seen: int
    rows: list[ParsedRow] = field(default_factory=list)
    points: list[Coordinate] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    bounds: CountryBounds | None = None


@dataclass(frozen=True)
class RegionExtraction:
    """
    Regions produced from one file plus the number of groups that could not
    form a polygon (too few points, collinear, or unknown country).
    """

    regions: list[Region]
    skipped_groups: int = 0


def parse_number(raw: str | None) -> float | None:
    """
    Parse a CSV cell as a finite float. Thousands separators are accepted.
    """

    if raw is None:
        return None
    text = raw.strip().replace(",", "")
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _production(rows: Sequence[ParsedRow], value_column: str | None) -> Measurement:
    if value_column is None:
        return Measurement.placeholder()
    values = [parse_number(row.get(value_column)) for row in rows]
    numbers = [value for value in values if value is not None]
    if not numbers:
        return Measurement.placeholder()
    return Measurement.measured(sum(numbers))


def _ranked(groups: dict[str, _Group], top_k: int) -> list[_Group]:
    ordered = sorted(groups.values(), key=lambda group: (-len(group.rows), group.first_seen))
    return ordered[: max(0, top_k)]


def _region_name_for(row: ParsedRow, roles: ColumnRoles) -> str:
    if roles.country_column:
        value = row.get(roles.country_column, "").strip()
        if value:
            return value
    for header in REGION_NAME_FALLBACK_HEADERS:
        value = (row.get(header) or "").strip()
        if value:
            return value
    return UNKNOWN_REGION


def _point_for(row: ParsedRow, roles: ColumnRoles) -> Coordinate | None:
    lat = parse_number(row.get(roles.lat_column or ""))
    lng = parse_number(row.get(roles.lng_column or ""))
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return (lat, lng)


def _aggregate_points(
    rows: Sequence[ParsedRow],
    roles: ColumnRoles,
    sector: Sector,
    *,
    source_file: str | None,
    top_k: int,
    hull_threshold: int,
) -> RegionExtraction:
    groups: dict[str, _Group] = {}
    for row in rows:
        point = _point_for(row, roles)
        if point is None:
            continue
        name = _region_name_for(row, roles)
        group = groups.get(name)
        if group is None:
            group = groups[name] = _Group(key=name, first_seen=len(groups))
        group.rows.append(row)
        group.points.append(point)

    regions: list[Region] = []
    skipped = 0
    for group in _ranked(groups, len(groups)):
        if len(regions) >= top_k:
            break
        try:
            ring, method = build_boundary(group.points, hull_threshold=hull_threshold)
        except DegeneratePolygonError as exc:
            skipped += 1
            log_event(
                logger,
                logging.INFO,
                "region_group_skipped",
                source_file=source_file,
                sector=sector.key,
                group=group.key,
                data_points=len(group.points),
                reason=str(exc),
            )
            continue

        countries = () if group.key == UNKNOWN_REGION else (group.key,)
        regions.append(
            Region(
                name=group.key,
                country=group.key,
                polygon=tuple(ring),
                boundary_method=method,
                properties=RegionProperties(
                    area=Measurement.measured(polygon_area(ring)),
                    production=_production(group.rows, roles.value_column),
                    data_points=len(group.rows),
                    sector=sector.key,
                    source_file=source_file,
                    countries=countries,
                ),
            )
        )
    return RegionExtraction(regions=regions, skipped_groups=skipped)


def _aggregate_countries(
    rows: Sequence[ParsedRow],
    roles: ColumnRoles,
    sector: Sector,
    *,
    source_file: str | None,
    top_k: int,
) -> RegionExtraction:
    country_column = roles.country_column or ""
    groups: dict[str, _Group] = {}
    unmatched: set[str] = set()
    for row in rows:
        raw_name = row.get(country_column, "").strip()
        if len(raw_name) < MIN_COUNTRY_NAME_LENGTH or raw_name.casefold() in AGGREGATE_AREA_NAMES:
            continue
        bounds = find_country_bounds(raw_name)
        if bounds is None:
            unmatched.add(raw_name.casefold())
            continue
        group = groups.get(bounds.name)
        if group is None:
            group = groups[bounds.name] = _Group(key=bounds.name, first_seen=len(groups), bounds=bounds)
        group.rows.append(row)
        if raw_name not in group.names:
            group.names.append(raw_name)

    if unmatched:
        log_event(
            logger,
            logging.INFO,
            "country_groups_unmatched",
            source_file=source_file,
            sector=sector.key,
            count=len(unmatched),
            sample=sorted(unmatched)[:5],
        )

    regions: list[Region] = []
    for group in _ranked(groups, top_k):
        if group.bounds is None:
            continue
        regions.append(
            Region(
                name=f"{group.key} {sector.region_label}",
                country=group.key,
                polygon=group.bounds.polygon,
                boundary_method="country_lookup",
                properties=RegionProperties(
                    area=Measurement.placeholder(group.bounds.area),
                    production=_production(group.rows, roles.value_column),
                    data_points=len(group.rows),
                    sector=sector.key,
                    source_file=source_file,
                    countries=tuple(group.names),
                ),
            )
        )
    return RegionExtraction(regions=regions, skipped_groups=len(unmatched))


def aggregate_regions(
    rows: Sequence[ParsedRow],
    roles: ColumnRoles,
    sector: Sector,
    *,
    source_file: str | None = None,
    top_k: int = DEFAULT_TOP_K,
    hull_threshold: int = HULL_POINT_THRESHOLD,
) -> RegionExtraction:
    """
    Group *rows* into regions for *sector*.

    Regions are ordered by descending row count, ties broken by first-seen
    order, and capped to *top_k*. Files without a geographic signal yield no
    regions.
    """

    if roles.has_points:
        return _aggregate_points(
            rows,
            roles,
            sector,
            source_file=source_file,
            top_k=top_k,
            hull_threshold=hull_threshold,
        )
    if roles.country_column:
        return _aggregate_countries(rows, roles, sector, source_file=source_file, top_k=top_k)
    return RegionExtraction(regions=[])

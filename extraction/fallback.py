"""
extraction/fallback.py

Template sectors served when no computed aggregation is available yet.

Every region here has ``boundary_method="template"`` and placeholder
statistics, so consumers can tell it apart from data derived from the bucket.
"""

from __future__ import annotations

from datetime import datetime

from app.domain.agriculture import (
    AggregationResult,
    AggregationSummary,
    Measurement,
    Region,
    RegionProperties,
    SectorAggregate,
)
from extraction.sectors import get_sector

# sector key -> (region name, country, (min_lat, min_lng, max_lat, max_lng), nominal area, nominal production)
_TEMPLATES: dict[str, tuple[tuple[str, str, tuple[float, float, float, float], float, float], ...]] = {
    "crops_production": (
        ("US Midwest Corn Belt", "United States", (40.0, -94.0, 45.0, -82.0), 65000.0, 450000.0),
        ("Argentine Pampas", "Argentina", (-35.0, -63.0, -30.0, -57.0), 55000.0, 380000.0),
        ("Ukrainian Grain Region", "Ukraine", (47.0, 29.0, 51.0, 35.0), 48000.0, 320000.0),
    ),
    "trade": (
        ("Port of Rotterdam Agricultural Hub", "Netherlands", (51.5, 3.5, 52.5, 5.5), 15000.0, 200000.0),
        ("Chicago Commodity Exchange Region", "United States", (41.0, -89.0, 43.0, -87.0), 25000.0, 350000.0),
    ),
}


def _template_region(
    sector_key: str,
    name: str,
    country: str,
    box: tuple[float, float, float, float],
    area: float,
    production: float,
) -> Region:
    min_lat, min_lng, max_lat, max_lng = box
    return Region(
        name=name,
        country=country,
        polygon=(
            (min_lat, min_lng),
            (min_lat, max_lng),
            (max_lat, max_lng),
            (max_lat, min_lng),
            (min_lat, min_lng),
        ),
        boundary_method="template",
        properties=RegionProperties(
            area=Measurement.placeholder(area),
            production=Measurement.placeholder(production),
            data_points=0,
            sector=sector_key,
            countries=(country,),
        ),
    )


def fallback_sectors() -> dict[str, SectorAggregate]:
    sectors: dict[str, SectorAggregate] = {}
    for sector_key, templates in _TEMPLATES.items():
        sector = get_sector(sector_key)
        if sector is None:
            continue
        sectors[sector_key] = SectorAggregate(
            sector=sector,
            regions=[_template_region(sector_key, *template) for template in templates],
        )
    return sectors


def fallback_result(computed_at: datetime) -> AggregationResult:
    """Build a labeled placeholder aggregation stamped with *computed_at*."""
    return AggregationResult(
        sectors=fallback_sectors(),
        summary=AggregationSummary(),
        computed_at=computed_at,
    )

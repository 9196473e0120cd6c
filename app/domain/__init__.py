"""
app/domain package marker.
"""

from app.domain.agriculture import (
    AggregationResult,
    AggregationSummary,
    BoundingBox,
    CacheOutcome,
    ColumnRoles,
    CountrySectorRecords,
    CSVSample,
    Measurement,
    ParsedRow,
    Region,
    RegionDetails,
    RegionProperties,
    RemoteObject,
    Sector,
    SectorAggregate,
)

__all__ = [
    "AggregationResult",
    "AggregationSummary",
    "BoundingBox",
    "CacheOutcome",
    "ColumnRoles",
    "CountrySectorRecords",
    "CSVSample",
    "Measurement",
    "ParsedRow",
    "Region",
    "RegionDetails",
    "RegionProperties",
    "RemoteObject",
    "Sector",
    "SectorAggregate",
]

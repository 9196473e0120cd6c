"""
app/schemas package marker.
"""

from app.schemas.agriculture import (
    AgricultureDataResponse,
    RealCoordinatesResponse,
    RegionDetailsResponse,
    RegionResponse,
    SectorCatalogResponse,
    SectorResponse,
)
from app.schemas.common import CamelModel, ErrorResponse
from app.schemas.domains import DatasetSampleResponse, DomainMetadataResponse, DomainSampleResponse

__all__ = [
    "AgricultureDataResponse",
    "CamelModel",
    "DatasetSampleResponse",
    "DomainMetadataResponse",
    "DomainSampleResponse",
    "ErrorResponse",
    "RealCoordinatesResponse",
    "RegionDetailsResponse",
    "RegionResponse",
    "SectorCatalogResponse",
    "SectorResponse",
]

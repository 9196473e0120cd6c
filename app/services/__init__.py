"""
app/services package marker.
"""

from app.services.aggregation_cache import AggregationCache, get_aggregation_cache
from app.services.agriculture_service import (
    AgricultureAggregationService,
    get_agriculture_aggregation_service,
)
from app.services.domain_catalog_service import (
    DomainCatalogService,
    UnknownDomainError,
    get_domain_catalog_service,
)
from app.services.region_details_service import (
    RegionDetailsService,
    get_region_details_service,
)

__all__ = [
    "AggregationCache",
    "get_aggregation_cache",
    "AgricultureAggregationService",
    "get_agriculture_aggregation_service",
    "DomainCatalogService",
    "UnknownDomainError",
    "get_domain_catalog_service",
    "RegionDetailsService",
    "get_region_details_service",
]

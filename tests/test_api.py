"""
tests/test_api.py

HTTP contract tests through FastAPI's TestClient. Service dependencies are
overridden with instances built on the in-memory object store.

Coverage
--------
- camelCase response bodies for sector data
- 503 with a full labeled body when the aggregation fails
- /real-coordinates keeps only point-derived regions
- /region-details validation and storage errors
- Domain endpoints: 404 for unknown domains, 400 for invalid limits
- /health, /api/health and /sectors
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config import AggregationSettings, DomainSampleSettings, RegionDetailsSettings
from app.main import create_app
from app.services.agriculture_service import AgricultureAggregationService
from app.services.aggregation_cache import AggregationCache, get_aggregation_cache
from app.services.domain_catalog_service import DomainCatalogService, get_domain_catalog_service
from app.services.region_details_service import RegionDetailsService, get_region_details_service

BUCKET = "eo-agriculture-forestry"


@pytest.fixture()
def seeded_store(store):
    store.put(BUCKET, "crop_production.csv", "Area,Value\nBrazil,10\nArgentina,4\n")
    store.put(
        BUCKET,
        "harvest_sites.csv",
        "Region,Latitude,Longitude\nRift,-1,36\nRift,-2,37\nRift,0,38\n",
    )
    store.put("eo-marine", "sst/jan.csv", "lat,lon,sst\n1,2,20\n")
    return store


@pytest.fixture()
def cache(seeded_store, clock, wall_clock) -> AggregationCache:
    service = AgricultureAggregationService(
        store=seeded_store,
        bucket=BUCKET,
        settings=AggregationSettings(),
        clock=clock,
        wall_clock=wall_clock,
    )
    return AggregationCache(
        compute=service.aggregate,
        ttl_seconds=1800.0,
        wait_timeout_seconds=5.0,
        clock=clock,
        wall_clock=wall_clock,
    )


@pytest.fixture()
def client(seeded_store, cache, clock):
    application = create_app()
    application.dependency_overrides[get_aggregation_cache] = lambda: cache
    application.dependency_overrides[get_region_details_service] = lambda: RegionDetailsService(
        store=seeded_store,
        bucket=BUCKET,
        settings=RegionDetailsSettings(),
        clock=clock,
    )
    application.dependency_overrides[get_domain_catalog_service] = lambda: DomainCatalogService(
        store=seeded_store,
        domain_buckets={"marine": "eo-marine", "agriculture": BUCKET},
        settings=DomainSampleSettings(),
    )
    return TestClient(application)


# ---------------------------------------------------------------------------
# Sector data
# ---------------------------------------------------------------------------


class TestRealData:
    def test_sectors_are_served_in_camel_case(self, client) -> None:
        response = client.get("/api/agriculture/real-data")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        crops = body["sectors"]["crops_production"]
        assert crops["totalRegions"] == 3
        region = crops["regions"][0]
        assert region["boundaryMethod"] in {"country_lookup", "convex_hull"}
        assert "dataPoints" in region["properties"]
        assert region["coordinates"][0] == region["coordinates"][-1]
        assert body["summary"]["source"] == "fresh"
        assert body["summary"]["filesProcessed"] == 2

    def test_second_call_is_served_from_cache(self, client, seeded_store) -> None:
        client.get("/api/agriculture/real-data")
        reads = len(seeded_store.read_log)

        body = client.get("/api/agriculture/real-data").json()

        assert body["summary"]["source"] == "cached"
        assert len(seeded_store.read_log) == reads

    def test_failed_aggregation_returns_503_with_labeled_body(self, client, seeded_store) -> None:
        seeded_store.fail_listing = True

        response = client.get("/api/agriculture/real-data")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert "listing" in body["error"]
        assert body["summary"]["source"] == "fallback"
        regions = body["sectors"]["crops_production"]["regions"]
        assert all(region["boundaryMethod"] == "template" for region in regions)

    def test_refresh_recomputes(self, client, cache) -> None:
        client.get("/api/agriculture/real-data")

        response = client.post("/api/agriculture/cache/refresh")

        assert response.status_code == 200
        assert response.json()["summary"]["source"] == "fresh"
        assert cache.compute_count == 2


class TestRealCoordinates:
    def test_only_point_regions_with_bounds(self, client) -> None:
        body = client.get("/api/agriculture/real-coordinates").json()

        crops = body["coordinates"]["crops_production"]
        assert [region["boundaryMethod"] for region in crops["regions"]] == ["convex_hull"]
        assert crops["bounds"] == {"minLat": -2.0, "maxLat": 0.0, "minLng": 36.0, "maxLng": 38.0}
        assert body["summary"]["totalRegions"] == 1


# ---------------------------------------------------------------------------
# Region details
# ---------------------------------------------------------------------------


class TestRegionDetails:
    def test_matching_rows(self, client) -> None:
        response = client.get("/api/agriculture/region-details", params={"country": "Brazil"})

        assert response.status_code == 200
        body = response.json()
        assert body["sector"] == "all"
        assert body["summary"]["totalRecords"] == 1
        assert body["summary"]["foundSectors"] == ["crops_production"]
        assert body["data"][0]["Area"] == "Brazil"
        assert body["data"][0]["SourceFile"] == "crop_production.csv"
        assert body["searchParams"] == {"country": "Brazil", "sector": None}

    def test_missing_country_is_400(self, client) -> None:
        response = client.get("/api/agriculture/region-details")

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Country parameter is required."}

    def test_unknown_sector_is_400(self, client) -> None:
        response = client.get("/api/agriculture/region-details", params={"country": "Brazil", "sector": "mining"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_storage_failure_is_503(self, client, seeded_store) -> None:
        seeded_store.fail_listing = True

        response = client.get("/api/agriculture/region-details", params={"country": "Brazil"})

        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "Agriculture bucket is unavailable."}


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------


class TestDomains:
    def test_metadata(self, client) -> None:
        body = client.get("/api/domains/marine/metadata").json()

        assert body["bucketName"] == "eo-marine"
        assert body["totalFiles"] == 1
        assert body["categories"][0]["category"] == "sst"
        assert body["categories"][0]["fileCount"] == 1

    def test_sample(self, client) -> None:
        body = client.get("/api/domains/marine/sample", params={"limit": 5}).json()

        assert body["count"] == 1
        sample = body["samples"][0]
        assert sample["name"] == "sst/jan.csv"
        assert sample["preview"] == "lat,lon,sst\n1,2,20\n"
        assert sample["previewTruncated"] is False
        assert sample["url"].startswith("https://signed.example/eo-marine/")

    def test_unknown_domain_is_404(self, client) -> None:
        response = client.get("/api/domains/space/metadata")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_invalid_limit_is_400(self, client) -> None:
        response = client.get("/api/domains/marine/sample", params={"limit": 0})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_storage_failure_is_503(self, client, seeded_store) -> None:
        seeded_store.fail_listing = True

        response = client.get("/api/domains/marine/sample")

        assert response.status_code == 503


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------


class TestServiceEndpoints:
    def test_health(self, client) -> None:
        body = client.get("/health").json()

        assert body["success"] is True
        assert body["status"] == "ok"
        assert "storageBackend" in body

    def test_health_is_also_served_under_api_prefix(self, client) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_sector_catalog_lists_general_last(self, client) -> None:
        body = client.get("/api/agriculture/sectors").json()

        keys = [sector["key"] for sector in body["sectors"]]
        assert keys[0] == "crops_production"
        assert keys[-1] == "general"
        assert "regionLabel" in body["sectors"][0]

    def test_unknown_route_uses_error_shape(self, client) -> None:
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["success"] is False

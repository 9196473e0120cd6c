"""
Inspect a domain bucket or run one agriculture aggregation from the CLI.
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone

from app.config import get_log_level
from app.domain.agriculture import CacheOutcome
from app.logging_utils import configure_logging
from app.schemas.agriculture import sector_response, summary_response
from app.services.agriculture_service import get_agriculture_aggregation_service
from app.services.domain_catalog_service import UnknownDomainError, get_domain_catalog_service
from app.storage import StorageError


def _list_domain(domain: str) -> dict:
    metadata = get_domain_catalog_service().metadata(domain)
    return {
        "domain": metadata.domain,
        "bucket": metadata.bucket,
        "total_files": metadata.total_files,
        "total_size": metadata.total_size,
        "categories": [
            {
                "category": category.category,
                "file_count": category.file_count,
                "total_size": category.total_size,
                "last_updated": category.last_updated.isoformat() if category.last_updated else None,
            }
            for category in metadata.categories
        ],
    }


def _aggregate(include_regions: bool) -> dict:
    result = get_agriculture_aggregation_service().aggregate()
    sectors = {key: sector_response(aggregate) for key, aggregate in result.sectors.items()}
    summary = summary_response(
        CacheOutcome(result=result, source="fresh"),
        timestamp=datetime.now(tz=timezone.utc),
        sectors=sectors,
    )
    payload: dict = {"summary": summary.model_dump(mode="json", by_alias=True)}
    if include_regions:
        payload["sectors"] = {key: sector.model_dump(mode="json", by_alias=True) for key, sector in sectors.items()}
    else:
        payload["sectors"] = {
            key: {"name": sector.name, "totalRegions": sector.total_regions, "files": sector.files}
            for key, sector in sectors.items()
        }
    return payload


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect Earth-observation buckets.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Summarize a domain bucket by category.")
    list_parser.add_argument(
        "--domain",
        dest="domain",
        default="agriculture",
        help="Domain name mapped to a bucket (default: agriculture).",
    )

    aggregate_parser = subparsers.add_parser("aggregate", help="Run one agriculture aggregation.")
    aggregate_parser.add_argument(
        "--regions",
        dest="regions",
        action="store_true",
        help="Include full region polygons in the output.",
    )
    args = parser.parse_args()

    configure_logging(get_log_level())
    try:
        if args.command == "list":
            payload = _list_domain(args.domain)
        else:
            payload = _aggregate(args.regions)
    except (UnknownDomainError, StorageError) as exc:
        print(json.dumps({"success": False, "error": str(exc)}, indent=2))
        return 1

    print(json.dumps({"success": True, **payload}, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Run a catalog price-range harvest from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, replace

from harvester.config import get_harvest_settings
from harvester.engine import RangeHarvestEngine
from harvester.exceptions import HarvestStartupError
from harvester.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Harvest every product of a catalog by price range.")
    parser.add_argument("--base-url", dest="base_url", default=None, help="Catalog endpoint URL.")
    parser.add_argument("--workers", dest="worker_count", type=int, default=None, help="Worker thread count.")
    parser.add_argument("--max-price", dest="domain_high", type=float, default=None, help="Upper price bound.")
    parser.add_argument(
        "--unique",
        action="store_true",
        help="Drop products reported twice on split boundaries.",
    )
    parser.add_argument("--log-level", dest="log_level", default="INFO", help="Logging level.")
    args = parser.parse_args()

    configure_logging(args.log_level)

    overrides = {
        key: value
        for key, value in (
            ("base_url", args.base_url),
            ("worker_count", args.worker_count),
            ("domain_high", args.domain_high),
        )
        if value is not None
    }
    try:
        settings = replace(get_harvest_settings(), **overrides)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        result = RangeHarvestEngine(settings=settings).run()
    except HarvestStartupError as exc:
        logger.error("Harvest could not start: %s", exc)
        return 1

    products = result.unique_products() if args.unique else result.products
    payload = {
        "preliminary_total": result.preliminary_total,
        "stats": asdict(result.stats),
        "products": [product.to_dict() for product in products],
        "failed_ranges": [failed.to_dict() for failed in result.failed_ranges],
    }
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

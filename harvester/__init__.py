"""
Adaptive price-range harvesting for paginated catalog APIs.
"""

from harvester.client import CatalogClient, RangeQueryClient
from harvester.config import HarvestSettings, get_harvest_settings
from harvester.engine import RangeHarvestEngine
from harvester.exceptions import HarvesterError, HarvestStartupError, RangeQueryError
from harvester.types import FailedRange, HarvestResult, HarvestStats, PriceRange, Product

__all__ = [
    "CatalogClient",
    "FailedRange",
    "HarvestResult",
    "HarvestSettings",
    "HarvestStartupError",
    "HarvestStats",
    "HarvesterError",
    "PriceRange",
    "Product",
    "RangeHarvestEngine",
    "RangeQueryClient",
    "RangeQueryError",
    "get_harvest_settings",
]

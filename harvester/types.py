"""
harvester/types.py

Domain models shared by the range harvesting engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class PriceRange:
    """
    Closed price interval used as a catalog query filter.
    """

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Invalid price range: low={self.low} is above high={self.high}.")

    @property
    def width(self) -> float:
        return self.high - self.low

    @property
    def midpoint(self) -> float:
        return self.low + self.width / 2

    def split(self) -> tuple["PriceRange", "PriceRange"]:
        """
        Halve the range. Both children share the midpoint as a boundary.
        """

        mid = self.midpoint
        return PriceRange(self.low, mid), PriceRange(mid, self.high)

    def as_pair(self) -> list[float]:
        return [self.low, self.high]


@dataclass(frozen=True)
class RangeTask:
    """
    One queued unit of work: a range plus its failed attempt count.
    """

    price_range: PriceRange
    attempts: int = 0

    def retry(self) -> "RangeTask":
        return replace(self, attempts=self.attempts + 1)


@dataclass(frozen=True)
class Product:
    """
    One catalog record.
    """

    id: int
    name: str
    price: float

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "price": self.price}


@dataclass(frozen=True)
class QueryResult:
    """
    Match count and returned page for one range query.
    """

    match_count: int
    products: list[Product] = field(default_factory=list)


@dataclass(frozen=True)
class FailedRange:
    """
    A range that could not be resolved.
    """

    price_range: PriceRange
    attempts: int
    reason: str
    last_error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "range": self.price_range.as_pair(),
            "attempts": self.attempts,
            "reason": self.reason,
            "last_error": self.last_error,
        }


@dataclass(frozen=True)
class HarvestStats:
    """
    Counters describing one harvest run.
    """

    seed_partitions: int = 0
    queries_issued: int = 0
    query_failures: int = 0
    ranges_accepted: int = 0
    ranges_split: int = 0
    ranges_retried: int = 0
    ranges_failed: int = 0


@dataclass(frozen=True)
class HarvestResult:
    """
    Final aggregates of a completed harvest.
    """

    preliminary_total: int
    products: list[Product]
    failed_ranges: list[FailedRange]
    stats: HarvestStats

    def unique_products(self) -> list[Product]:
        """
        Drop repeated product ids, keeping the first arrival.

        Products priced exactly on a split boundary are matched by both
        sibling ranges.
        """

        seen: set[int] = set()
        unique: list[Product] = []
        for product in self.products:
            if product.id in seen:
                continue
            seen.add(product.id)
            unique.append(product)
        return unique

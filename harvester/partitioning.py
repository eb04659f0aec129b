"""
Range partitioning helpers.
"""

from __future__ import annotations

from harvester.types import PriceRange


def partition_count(total: int, page_cap: int) -> int:
    """
    Number of seed slices for an estimated total, never less than one.
    """

    if page_cap < 1:
        raise ValueError("page_cap must be at least 1.")
    return max(1, total // page_cap)


def initial_partition(domain: PriceRange, *, total: int, page_cap: int) -> list[PriceRange]:
    """
    Slice the domain into equal-width contiguous ranges sized from the estimate.

    The last slice always ends exactly at the domain high bound.
    """

    count = partition_count(total, page_cap)
    width = domain.width / count
    slices: list[PriceRange] = []
    low = domain.low
    for index in range(count):
        high = domain.high if index == count - 1 else domain.low + width * (index + 1)
        slices.append(PriceRange(low, high))
        low = high
    return slices


def can_split(price_range: PriceRange, *, min_range_width: float) -> bool:
    """
    Whether a dense range can still be halved into two narrower ranges.
    """

    if price_range.width < min_range_width:
        return False
    mid = price_range.midpoint
    return price_range.low < mid < price_range.high

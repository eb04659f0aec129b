"""
harvester/decision.py

Per-task decision logic: accept, split, retry or fail a queried range.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from harvester.partitioning import can_split
from harvester.types import FailedRange, Product, QueryResult, RangeTask

REASON_QUERY_FAILED = "query_failed"
REASON_TOO_DENSE = "too_dense"
REASON_INTERNAL_ERROR = "internal_error"


class DecisionAction(str, Enum):
    ACCEPT = "accept"
    SPLIT = "split"
    RETRY = "retry"
    FAIL = "fail"


@dataclass(frozen=True)
class Decision:
    """
    Outcome of evaluating one range task.
    """

    action: DecisionAction
    products: list[Product] = field(default_factory=list)
    follow_ups: list[RangeTask] = field(default_factory=list)
    failed_range: FailedRange | None = None


def decide(
    task: RangeTask,
    result: QueryResult | None,
    error: Exception | None = None,
    *,
    page_cap: int,
    max_attempts: int,
    min_range_width: float,
) -> Decision:
    """
    Decide what happens to a task given its query outcome.

    `task.attempts` counts previous failed queries for the range, so with
    `max_attempts=3` a range is queried at most three times.
    """

    if error is not None or result is None:
        failed_attempts = task.attempts + 1
        if failed_attempts < max_attempts:
            return Decision(action=DecisionAction.RETRY, follow_ups=[task.retry()])
        return Decision(
            action=DecisionAction.FAIL,
            failed_range=FailedRange(
                price_range=task.price_range,
                attempts=failed_attempts,
                reason=REASON_QUERY_FAILED,
                last_error=str(error) if error is not None else None,
            ),
        )

    if result.match_count <= page_cap:
        return Decision(action=DecisionAction.ACCEPT, products=list(result.products))

    if not can_split(task.price_range, min_range_width=min_range_width):
        return Decision(
            action=DecisionAction.FAIL,
            failed_range=FailedRange(
                price_range=task.price_range,
                attempts=task.attempts,
                reason=REASON_TOO_DENSE,
                last_error=f"{result.match_count} matches exceed page cap {page_cap}",
            ),
        )

    left, right = task.price_range.split()
    return Decision(
        action=DecisionAction.SPLIT,
        follow_ups=[RangeTask(price_range=left), RangeTask(price_range=right)],
    )

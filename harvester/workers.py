"""
Worker pool draining the range task queue.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter

from harvester.client import RangeQueryClient
from harvester.collectors import ErrorCollector, RecordCollector
from harvester.decision import REASON_INTERNAL_ERROR, Decision, DecisionAction, decide
from harvester.logging_utils import log_event
from harvester.rate_limiter import TokenBucketRateLimiter
from harvester.types import FailedRange, HarvestStats, QueryResult, RangeTask
from harvester.work_queue import RangeTaskQueue

logger = logging.getLogger(__name__)

_ACTION_COUNTERS = {
    DecisionAction.ACCEPT: "ranges_accepted",
    DecisionAction.SPLIT: "ranges_split",
    DecisionAction.RETRY: "ranges_retried",
    DecisionAction.FAIL: "ranges_failed",
}


class RunCounters:
    """
    Thread-safe counters backing HarvestStats.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Counter[str] = Counter()

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def to_stats(self) -> HarvestStats:
        with self._lock:
            counts = dict(self._counts)
        return HarvestStats(
            seed_partitions=counts.get("seed_partitions", 0),
            queries_issued=counts.get("queries_issued", 0),
            query_failures=counts.get("query_failures", 0),
            ranges_accepted=counts.get("ranges_accepted", 0),
            ranges_split=counts.get("ranges_split", 0),
            ranges_retried=counts.get("ranges_retried", 0),
            ranges_failed=counts.get("ranges_failed", 0),
        )


class WorkerPool:
    """
    Fixed set of threads that query, evaluate and resolve range tasks.
    """

    def __init__(
        self,
        *,
        worker_count: int,
        task_queue: RangeTaskQueue,
        client: RangeQueryClient,
        rate_limiter: TokenBucketRateLimiter,
        records: RecordCollector,
        errors: ErrorCollector,
        page_cap: int,
        max_attempts: int,
        min_range_width: float,
        counters: RunCounters | None = None,
    ) -> None:
        if worker_count < 1:
            raise ValueError("worker_count must be at least 1.")
        self._worker_count = worker_count
        self._queue = task_queue
        self._client = client
        self._rate_limiter = rate_limiter
        self._records = records
        self._errors = errors
        self._page_cap = page_cap
        self._max_attempts = max_attempts
        self._min_range_width = min_range_width
        self.counters = counters or RunCounters()
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        if self._threads:
            return
        for index in range(self._worker_count):
            thread = threading.Thread(
                target=self._run,
                name=f"range-worker-{index + 1}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """
        Wait for every worker to exit. Returns False if any is still alive.
        """

        for thread in self._threads:
            thread.join(timeout)
        return not any(thread.is_alive() for thread in self._threads)

    def process(self, task: RangeTask) -> Decision:
        """
        Evaluate and resolve one task.
        """

        try:
            decision = self._evaluate(task)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "worker_error",
                price_range=task.price_range.as_pair(),
                error=str(exc),
            )
            decision = Decision(
                action=DecisionAction.FAIL,
                failed_range=FailedRange(
                    price_range=task.price_range,
                    attempts=task.attempts,
                    reason=REASON_INTERNAL_ERROR,
                    last_error=str(exc),
                ),
            )
        self._apply(task, decision)
        return decision

    def _run(self) -> None:
        while True:
            task = self._queue.get()
            if task is None:
                return
            self.process(task)

    def _evaluate(self, task: RangeTask) -> Decision:
        result: QueryResult | None = None
        error: Exception | None = None

        self._rate_limiter.acquire()
        self.counters.increment("queries_issued")
        try:
            result = self._client.query(task.price_range)
        except Exception as exc:
            error = exc
            self.counters.increment("query_failures")

        return decide(
            task,
            result,
            error,
            page_cap=self._page_cap,
            max_attempts=self._max_attempts,
            min_range_width=self._min_range_width,
        )

    def _apply(self, task: RangeTask, decision: Decision) -> None:
        # Outputs reach the collectors before the task is resolved so nothing
        # is still in flight once the queue drains.
        for product in decision.products:
            self._records.collect(product)
        if decision.failed_range is not None:
            self._errors.collect(decision.failed_range)

        self.counters.increment(_ACTION_COUNTERS[decision.action])
        self._log_decision(task, decision)
        self._queue.resolve(task, decision.follow_ups)

    @staticmethod
    def _log_decision(task: RangeTask, decision: Decision) -> None:
        price_range = task.price_range.as_pair()
        if decision.action is DecisionAction.ACCEPT:
            log_event(
                logger,
                logging.DEBUG,
                "range_accepted",
                price_range=price_range,
                products=len(decision.products),
            )
        elif decision.action is DecisionAction.SPLIT:
            log_event(
                logger,
                logging.DEBUG,
                "range_split",
                price_range=price_range,
                children=[child.price_range.as_pair() for child in decision.follow_ups],
            )
        elif decision.action is DecisionAction.RETRY:
            log_event(
                logger,
                logging.WARNING,
                "range_retry",
                price_range=price_range,
                attempt=task.attempts + 1,
            )
        elif decision.failed_range is not None:
            log_event(
                logger,
                logging.ERROR,
                "range_failed",
                price_range=price_range,
                attempts=decision.failed_range.attempts,
                reason=decision.failed_range.reason,
                error=decision.failed_range.last_error,
            )

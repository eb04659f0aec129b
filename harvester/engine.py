"""
Adaptive range harvesting engine.
"""

from __future__ import annotations

import logging

from harvester.client import CatalogClient, RangeQueryClient
from harvester.collectors import ErrorCollector, RecordCollector
from harvester.config import HarvestSettings
from harvester.exceptions import HarvestStartupError
from harvester.logging_utils import log_event
from harvester.partitioning import initial_partition
from harvester.rate_limiter import TokenBucketRateLimiter
from harvester.types import HarvestResult, PriceRange, RangeTask
from harvester.work_queue import RangeTaskQueue
from harvester.workers import RunCounters, WorkerPool

logger = logging.getLogger(__name__)


class RangeHarvestEngine:
    """
    Orchestrates one harvest: estimate, seed, drain and ordered shutdown.
    """

    def __init__(
        self,
        *,
        settings: HarvestSettings,
        client: RangeQueryClient | None = None,
    ) -> None:
        self._settings = settings
        self._owned_client: CatalogClient | None = None
        if client is None:
            self._owned_client = CatalogClient(
                base_url=settings.base_url,
                timeout_seconds=settings.timeout_seconds,
            )
            client = self._owned_client
        self._client = client

    def run(self) -> HarvestResult:
        """
        Harvest every product in the configured price domain.

        Raises HarvestStartupError when the preliminary estimate query fails
        on every attempt. Per-range failures are reported in the result.
        """

        settings = self._settings
        domain = PriceRange(settings.domain_low, settings.domain_high)
        counters = RunCounters()
        rate_limiter = TokenBucketRateLimiter(
            capacity=settings.token_bucket_capacity,
            refill_interval_seconds=settings.token_refill_interval_seconds,
        )
        rate_limiter.start()
        try:
            return self._harvest(domain, rate_limiter, counters)
        finally:
            # stop() is a no-op if the drain path already stopped the limiter.
            rate_limiter.stop()
            if self._owned_client is not None:
                self._owned_client.close()

    def _harvest(
        self,
        domain: PriceRange,
        rate_limiter: TokenBucketRateLimiter,
        counters: RunCounters,
    ) -> HarvestResult:
        settings = self._settings
        try:
            total = self._preliminary_total(domain, rate_limiter, counters)
        except HarvestStartupError as exc:
            log_event(
                logger,
                logging.ERROR,
                "harvest_startup_failed",
                domain=domain.as_pair(),
                error=str(exc),
            )
            raise

        task_queue = RangeTaskQueue()
        records = RecordCollector(buffer_size=settings.record_buffer_size)
        errors = ErrorCollector(buffer_size=settings.error_buffer_size)
        pool = WorkerPool(
            worker_count=settings.worker_count,
            task_queue=task_queue,
            client=self._client,
            rate_limiter=rate_limiter,
            records=records,
            errors=errors,
            page_cap=settings.page_cap,
            max_attempts=settings.max_attempts,
            min_range_width=settings.min_range_width,
            counters=counters,
        )

        slices = initial_partition(domain, total=total, page_cap=settings.page_cap)
        seeded = task_queue.seed(RangeTask(price_range=item) for item in slices)
        counters.increment("seed_partitions", seeded)
        log_event(
            logger,
            logging.INFO,
            "harvest_seeded",
            domain=domain.as_pair(),
            preliminary_total=total,
            partitions=seeded,
        )

        records.start()
        errors.start()
        pool.start()

        task_queue.wait_until_drained()
        rate_limiter.stop()

        # Shutdown order: every writer has stopped before its channel closes.
        task_queue.close()
        pool.join()
        records.close()
        errors.close()
        records.join()
        errors.join()

        result = HarvestResult(
            preliminary_total=total,
            products=records.snapshot(),
            failed_ranges=errors.snapshot(),
            stats=counters.to_stats(),
        )
        log_event(
            logger,
            logging.INFO,
            "harvest_completed",
            products=len(result.products),
            failed_ranges=len(result.failed_ranges),
            queries_issued=result.stats.queries_issued,
            ranges_split=result.stats.ranges_split,
            ranges_retried=result.stats.ranges_retried,
        )
        return result

    def _preliminary_total(
        self,
        domain: PriceRange,
        rate_limiter: TokenBucketRateLimiter,
        counters: RunCounters,
    ) -> int:
        last_error: Exception | None = None
        for attempt in range(1, self._settings.max_attempts + 1):
            rate_limiter.acquire()
            counters.increment("queries_issued")
            try:
                result = self._client.query(domain)
            except Exception as exc:
                last_error = exc
                counters.increment("query_failures")
                log_event(
                    logger,
                    logging.WARNING,
                    "preliminary_query_failed",
                    attempt=attempt,
                    max_attempts=self._settings.max_attempts,
                    error=str(exc),
                )
                continue
            return result.match_count

        raise HarvestStartupError(
            f"Preliminary query over {domain.as_pair()} failed after "
            f"{self._settings.max_attempts} attempt(s): {last_error}"
        ) from last_error

"""
Token-bucket request rate limiter.
"""

from __future__ import annotations

import threading
import time

from harvester.exceptions import RateLimiterClosedError


class TokenBucketRateLimiter:
    """
    Bounds burst and sustained outbound request rate across all workers.

    Up to `capacity` requests may pass back to back. A background thread frees
    at most one consumed slot every `refill_interval_seconds`, so once the
    bucket is empty the sustained rate is one request per tick.
    """

    def __init__(self, *, capacity: int, refill_interval_seconds: float) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1.")
        if refill_interval_seconds <= 0:
            raise ValueError("refill_interval_seconds must be positive.")

        self._capacity = capacity
        self._refill_interval_seconds = refill_interval_seconds
        self._in_use = 0
        self._condition = threading.Condition()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def available(self) -> int:
        with self._condition:
            return self._capacity - self._in_use

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """
        Launch the refill thread. Calling start twice is a no-op.
        """

        with self._condition:
            if self._stop_event.is_set():
                raise RateLimiterClosedError("Rate limiter was stopped and cannot be restarted.")
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._refill_loop,
                name="rate-limiter-refill",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """
        Stop refilling, wake blocked callers, and wait for the refill thread.
        """

        self._stop_event.set()
        with self._condition:
            self._condition.notify_all()
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def acquire(self, timeout: float | None = None) -> bool:
        """
        Block until a slot is free and consume it.

        Returns False only when `timeout` elapses first.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while True:
                if self._stop_event.is_set():
                    raise RateLimiterClosedError("Rate limiter is stopped.")
                if self._in_use < self._capacity:
                    self._in_use += 1
                    return True
                if deadline is None:
                    self._condition.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._condition.wait(remaining)

    def __enter__(self) -> "TokenBucketRateLimiter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _refill_loop(self) -> None:
        while not self._stop_event.wait(self._refill_interval_seconds):
            self._release_one()

    def _release_one(self) -> None:
        with self._condition:
            if self._in_use > 0:
                self._in_use -= 1
                self._condition.notify()

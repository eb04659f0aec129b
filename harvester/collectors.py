"""
Concurrent sinks for harvested products and failed ranges.
"""

from __future__ import annotations

import queue
import threading
from typing import Generic, TypeVar

from harvester.exceptions import CollectorClosedError, CollectorStateError
from harvester.types import FailedRange, Product

T = TypeVar("T")

_END = object()


class Collector(Generic[T]):
    """
    Many-producer sink drained by one dedicated thread.

    Producers hand items over a bounded channel; only the drain thread appends
    to the container. `snapshot()` is valid once the collector was closed and
    the drain loop finished.
    """

    def __init__(self, *, name: str, buffer_size: int) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1.")
        self.name = name
        self._channel: queue.Queue[object] = queue.Queue(maxsize=buffer_size)
        self._items: list[T] = []
        self._items_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False
        self._drained = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._drain_loop,
                name=f"{self.name}-collector",
                daemon=True,
            )
            self._thread.start()

    def collect(self, item: T) -> None:
        """
        Hand one item to the drain thread, blocking only on a full buffer.
        """

        if self._closed:
            raise CollectorClosedError(f"Collector '{self.name}' is closed.")
        self._channel.put(item)

    def close(self) -> None:
        """
        Signal that no producer will send further items.
        """

        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        self._channel.put(_END)

    def join(self, timeout: float | None = None) -> bool:
        """
        Wait for the drain loop to finish. Returns False on timeout.
        """

        return self._drained.wait(timeout)

    def snapshot(self) -> list[T]:
        if not self._drained.is_set():
            raise CollectorStateError(
                f"Collector '{self.name}' must be closed and drained before reading."
            )
        with self._items_lock:
            return list(self._items)

    def _drain_loop(self) -> None:
        while True:
            item = self._channel.get()
            if item is _END:
                break
            with self._items_lock:
                self._items.append(item)  # type: ignore[arg-type]
        self._drained.set()


class RecordCollector(Collector[Product]):
    """
    Collects accepted products in arrival order.
    """

    def __init__(self, *, buffer_size: int = 1000) -> None:
        super().__init__(name="records", buffer_size=buffer_size)


class ErrorCollector(Collector[FailedRange]):
    """
    Collects ranges that could not be resolved.
    """

    def __init__(self, *, buffer_size: int = 100) -> None:
        super().__init__(name="errors", buffer_size=buffer_size)

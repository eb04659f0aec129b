"""
Dynamic range task queue with outstanding-work accounting.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable

from harvester.exceptions import QueueClosedError, QueueProtocolError
from harvester.types import RangeTask

_CLOSED = object()


class RangeTaskQueue:
    """
    Unbounded queue of range tasks that knows when all work is resolved.

    Every task is counted before it becomes visible to consumers and is
    uncounted only when resolved, so the outstanding counter reaches zero
    exactly once all work, including follow-ups pushed by workers, is done.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._condition = threading.Condition()
        self._outstanding = 0
        self._created = 0
        self._resolved = 0
        self._closed = False

    @property
    def outstanding(self) -> int:
        with self._condition:
            return self._outstanding

    @property
    def created(self) -> int:
        with self._condition:
            return self._created

    @property
    def resolved(self) -> int:
        with self._condition:
            return self._resolved

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def seed(self, tasks: Iterable[RangeTask]) -> int:
        """
        Count and enqueue initial tasks. Returns how many were added.
        """

        added = 0
        with self._condition:
            self._ensure_open()
            for task in tasks:
                self._push(task)
                added += 1
        return added

    def get(self) -> RangeTask | None:
        """
        Block for the next task. Returns None once the queue is closed.
        """

        item = self._queue.get()
        if item is _CLOSED:
            # Republish so every other consumer also observes the close.
            self._queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def resolve(self, task: RangeTask, follow_ups: Iterable[RangeTask] = ()) -> None:
        """
        Mark one task resolved after counting and enqueuing its follow-ups.
        """

        pending = list(follow_ups)
        with self._condition:
            if self._outstanding < 1:
                raise QueueProtocolError(
                    f"Resolved more tasks than were created (range={task.price_range.as_pair()})."
                )
            if pending:
                self._ensure_open()
            for follow_up in pending:
                self._push(follow_up)
            self._outstanding -= 1
            self._resolved += 1
            if self._outstanding == 0:
                self._condition.notify_all()

    def wait_until_drained(self, timeout: float | None = None) -> bool:
        """
        Block until no task is outstanding. Returns False on timeout.
        """

        with self._condition:
            return self._condition.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    def close(self) -> None:
        """
        Release blocked consumers. Only legal once all work is resolved.
        """

        with self._condition:
            if self._closed:
                return
            if self._outstanding:
                raise QueueProtocolError(
                    f"Cannot close task queue with {self._outstanding} outstanding task(s)."
                )
            self._closed = True
        self._queue.put(_CLOSED)

    def _push(self, task: RangeTask) -> None:
        self._outstanding += 1
        self._created += 1
        self._queue.put(task)

    def _ensure_open(self) -> None:
        if self._closed:
            raise QueueClosedError("Task queue is closed.")

"""De-duplicating, rate limited work queue feeding the controller workers."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections import deque
from typing import Hashable

from . import metrics


class ItemExponentialFailureRateLimiter:
    """Per-item exponential backoff: ``base_delay * 2 ** failures``."""

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: dict[Hashable, int] = {}
        self._lock = threading.Lock()

    def when(self, item: Hashable) -> float:
        """Record a failure of ``item`` and return how long to wait."""
        with self._lock:
            failures = self._failures.get(item, 0)
            self._failures[item] = failures + 1
        # 2 ** failures grows past any float for long failing items
        if failures >= 64:
            return self.max_delay
        return min(self.base_delay * 2**failures, self.max_delay)

    def num_requeues(self, item: Hashable) -> int:
        with self._lock:
            return self._failures.get(item, 0)

    def forget(self, item: Hashable) -> None:
        with self._lock:
            self._failures.pop(item, None)


class RateLimitingQueue:
    """Work queue with the semantics controllers rely on.

    * A key added while already waiting is not queued twice.
    * A key added while a worker processes it is queued again once the
      worker calls ``done``, so one key is never processed concurrently.
    * ``add_rate_limited`` re-adds a failed key after its backoff delay.
    """

    def __init__(self, rate_limiter: ItemExponentialFailureRateLimiter | None = None):
        self.rate_limiter = rate_limiter or ItemExponentialFailureRateLimiter()
        self._queue: deque[Hashable] = deque()
        self._dirty: set[Hashable] = set()
        self._processing: set[Hashable] = set()
        self._waiting: list[tuple[float, int, Hashable]] = []
        self._sequence = itertools.count()
        self._cond = threading.Condition()
        self._shutting_down = False

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    def _add_locked(self, item: Hashable) -> None:
        if self._shutting_down or item in self._dirty:
            return
        metrics.queue_adds_total.inc()
        self._dirty.add(item)
        if item in self._processing:
            return
        self._queue.append(item)
        metrics.queue_depth.set(len(self._queue))
        self._cond.notify()

    def add(self, item: Hashable) -> None:
        """Queue ``item`` unless it is already waiting."""
        with self._cond:
            self._add_locked(item)

    def add_after(self, item: Hashable, delay: float) -> None:
        """Queue ``item`` once ``delay`` seconds have passed."""
        if delay <= 0:
            self.add(item)
            return
        with self._cond:
            if self._shutting_down:
                return
            heapq.heappush(self._waiting, (time.monotonic() + delay, next(self._sequence), item))
            self._cond.notify_all()

    def add_rate_limited(self, item: Hashable) -> None:
        """Queue ``item`` again after its backoff delay."""
        metrics.queue_retries_total.inc()
        self.add_after(item, self.rate_limiter.when(item))

    def forget(self, item: Hashable) -> None:
        """Reset the backoff of ``item``."""
        self.rate_limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return self.rate_limiter.num_requeues(item)

    def _release_due_locked(self) -> float | None:
        now = time.monotonic()
        while self._waiting and self._waiting[0][0] <= now:
            _, _, item = heapq.heappop(self._waiting)
            self._add_locked(item)
        if self._waiting:
            return self._waiting[0][0] - now
        return None

    def get(self, timeout: float | None = None) -> tuple[Hashable | None, bool]:
        """Block until a key is available.

        Args:
            timeout: Give up after this many seconds and return no key

        Returns:
            ``(key, shutdown)``; key is None when the queue shut down or
            the timeout passed
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                next_due = self._release_due_locked()
                if self._queue:
                    item = self._queue.popleft()
                    metrics.queue_depth.set(len(self._queue))
                    self._processing.add(item)
                    self._dirty.discard(item)
                    return item, False
                if self._shutting_down:
                    return None, True

                wait = next_due
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None, False
                    wait = remaining if wait is None else min(wait, remaining)
                self._cond.wait(wait)

    def done(self, item: Hashable) -> None:
        """Mark ``item`` as processed, re-queueing it if it was re-added."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                metrics.queue_depth.set(len(self._queue))
                self._cond.notify()

    def shut_down(self) -> None:
        """Stop accepting keys and wake every waiting worker."""
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

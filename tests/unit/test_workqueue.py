"""Tests for the rate limited work queue."""

from __future__ import annotations

import threading

import pytest

from vs_cm_shim.workqueue import ItemExponentialFailureRateLimiter, RateLimitingQueue


class TestItemExponentialFailureRateLimiter:
    """Test cases for the per-item backoff."""

    def test_exponential_growth(self):
        """Test that delays double per failure."""
        limiter = ItemExponentialFailureRateLimiter(base_delay=0.005, max_delay=1000.0)

        assert limiter.when("a") == pytest.approx(0.005)
        assert limiter.when("a") == pytest.approx(0.01)
        assert limiter.when("a") == pytest.approx(0.02)
        assert limiter.num_requeues("a") == 3

    def test_items_are_independent(self):
        """Test that failures are tracked per item."""
        limiter = ItemExponentialFailureRateLimiter(base_delay=1.0)
        limiter.when("a")
        limiter.when("a")

        assert limiter.when("b") == 1.0

    def test_max_delay(self):
        """Test that delays are capped."""
        limiter = ItemExponentialFailureRateLimiter(base_delay=1.0, max_delay=5.0)
        for _ in range(100):
            delay = limiter.when("a")

        assert delay == 5.0

    def test_forget(self):
        """Test that forgetting resets the backoff."""
        limiter = ItemExponentialFailureRateLimiter(base_delay=1.0)
        limiter.when("a")
        limiter.when("a")

        limiter.forget("a")

        assert limiter.num_requeues("a") == 0
        assert limiter.when("a") == 1.0


class TestRateLimitingQueue:
    """Test cases for RateLimitingQueue."""

    def test_deduplicates(self):
        """Test that a waiting key is queued once."""
        queue = RateLimitingQueue()
        queue.add("default/cafe")
        queue.add("default/cafe")

        assert len(queue) == 1

    def test_fifo(self):
        """Test that keys come out in insertion order."""
        queue = RateLimitingQueue()
        queue.add("a")
        queue.add("b")

        assert queue.get() == ("a", False)
        assert queue.get() == ("b", False)

    def test_add_while_processing(self):
        """Test that a key re-added during processing waits for done."""
        queue = RateLimitingQueue()
        queue.add("a")
        item, _ = queue.get()

        queue.add("a")
        assert len(queue) == 0

        queue.done(item)
        assert len(queue) == 1
        assert queue.get() == ("a", False)

    def test_done_without_re_add(self):
        """Test that done does not re-queue a clean key."""
        queue = RateLimitingQueue()
        queue.add("a")
        item, _ = queue.get()

        queue.done(item)

        assert len(queue) == 0

    def test_get_timeout(self):
        """Test that get gives up after the timeout."""
        queue = RateLimitingQueue()

        assert queue.get(timeout=0.01) == (None, False)

    def test_shut_down(self):
        """Test that shut down wakes blocked workers."""
        queue = RateLimitingQueue()
        results = []

        worker = threading.Thread(target=lambda: results.append(queue.get()))
        worker.start()
        queue.shut_down()
        worker.join(timeout=5)

        assert results == [(None, True)]
        assert queue.shutting_down

    def test_shut_down_drains_remaining(self):
        """Test that queued keys are still handed out after shut down."""
        queue = RateLimitingQueue()
        queue.add("a")
        queue.shut_down()

        assert queue.get() == ("a", False)
        assert queue.get() == (None, True)

    def test_add_after_shut_down_ignored(self):
        """Test that a shut down queue accepts no keys."""
        queue = RateLimitingQueue()
        queue.shut_down()

        queue.add("a")
        queue.add_after("b", 0.01)

        assert len(queue) == 0

    def test_add_after(self):
        """Test that delayed keys are released once due."""
        queue = RateLimitingQueue()

        queue.add_after("a", 0.01)

        assert len(queue) == 0
        assert queue.get(timeout=5) == ("a", False)

    def test_add_after_without_delay(self):
        """Test that a zero delay queues immediately."""
        queue = RateLimitingQueue()

        queue.add_after("a", 0)

        assert len(queue) == 1

    def test_add_rate_limited(self):
        """Test that failed keys come back after their backoff."""
        queue = RateLimitingQueue(ItemExponentialFailureRateLimiter(base_delay=0.001, max_delay=0.01))
        queue.add("a")
        item, _ = queue.get()

        queue.add_rate_limited(item)
        queue.done(item)

        assert queue.num_requeues("a") == 1
        assert queue.get(timeout=5) == ("a", False)

        queue.forget("a")
        assert queue.num_requeues("a") == 0

"""
Unit tests for the bounded work queue.
"""

import threading
import time

import pytest

from wordvec.runner.work_queue import BoundedWorkQueue


class TestBoundedWorkQueue:
    """Tests for BoundedWorkQueue."""

    def test_invalid_size(self):
        """Test maxsize below 1 is rejected."""
        with pytest.raises(ValueError):
            BoundedWorkQueue(0)

    def test_put_get(self):
        """Test items come back in FIFO order."""
        work_queue = BoundedWorkQueue(3)
        assert work_queue.put("a")
        assert work_queue.put("b")

        assert work_queue.get() == "a"
        assert work_queue.get() == "b"

    def test_none_rejected(self):
        """Test None cannot be queued."""
        with pytest.raises(ValueError):
            BoundedWorkQueue(1).put(None)

    def test_put_after_close(self):
        """Test putting into a closed queue fails."""
        work_queue = BoundedWorkQueue(1)
        work_queue.close()
        with pytest.raises(RuntimeError):
            work_queue.put("a")

    def test_drain_after_close(self):
        """Test remaining items are delivered after close, then None."""
        work_queue = BoundedWorkQueue(5)
        work_queue.put(1)
        work_queue.put(2)
        work_queue.close()

        assert work_queue.get() == 1
        assert work_queue.get() == 2
        assert work_queue.get() is None
        assert work_queue.get() is None

    def test_close_unblocks_waiting_consumer(self):
        """Test a consumer blocked on an empty queue returns None after close."""
        work_queue = BoundedWorkQueue(1, poll_interval=0.01)
        results = []

        consumer = threading.Thread(target=lambda: results.append(work_queue.get()))
        consumer.start()
        time.sleep(0.05)
        work_queue.close()
        consumer.join(timeout=2)

        assert not consumer.is_alive()
        assert results == [None]

    def test_put_blocks_when_full(self):
        """Test the producer waits until a consumer frees a slot."""
        work_queue = BoundedWorkQueue(1, poll_interval=0.01)
        work_queue.put("first")
        done = threading.Event()

        def produce():
            work_queue.put("second")
            done.set()

        producer = threading.Thread(target=produce)
        producer.start()

        assert not done.wait(0.05)
        assert work_queue.get() == "first"
        assert done.wait(2)
        producer.join(timeout=2)
        assert work_queue.get() == "second"

    def test_cancel_unblocks_producer(self):
        """Test cancellation releases a producer blocked on a full queue."""
        cancel_event = threading.Event()
        work_queue = BoundedWorkQueue(1, cancel_event=cancel_event, poll_interval=0.01)
        work_queue.put("first")
        results = []

        producer = threading.Thread(target=lambda: results.append(work_queue.put("second")))
        producer.start()
        time.sleep(0.05)
        cancel_event.set()
        producer.join(timeout=2)

        assert not producer.is_alive()
        assert results == [False]

    def test_cancel_unblocks_consumer(self):
        """Test cancellation releases a consumer blocked on an open queue."""
        cancel_event = threading.Event()
        work_queue = BoundedWorkQueue(1, cancel_event=cancel_event, poll_interval=0.01)
        results = []

        consumer = threading.Thread(target=lambda: results.append(work_queue.get()))
        consumer.start()
        time.sleep(0.05)
        cancel_event.set()
        consumer.join(timeout=2)

        assert results == [None]
        assert work_queue.cancelled

"""
Bounded single-producer, multi-consumer work queue with an explicit close.

Wraps ``queue.Queue`` with:
- ``close()`` to signal that no more items will be put
- ``get()`` returning None once the queue is closed and drained
- Cancellation through a shared threading.Event; blocked ``put``/``get``
  calls poll the event and return as soon as it is set
"""

import queue
import threading
from typing import Any, Optional


DEFAULT_POLL_INTERVAL = 0.1


class BoundedWorkQueue:
    """
    Bounded blocking queue shared by one producer and several consumers.

    Items must not be None; None is the "no more items" result of ``get()``.
    """

    def __init__(
        self,
        maxsize: int,
        cancel_event: Optional[threading.Event] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self.maxsize = maxsize
        self.poll_interval = poll_interval
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._cancel_event = cancel_event or threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def put(self, item: Any) -> bool:
        """
        Put an item, blocking while the queue is full.

        Returns:
            True if the item was queued, False if the queue was cancelled first

        Raises:
            ValueError: If item is None
            RuntimeError: If the queue has been closed
        """
        if item is None:
            raise ValueError("None cannot be queued")
        if self.closed:
            raise RuntimeError("put() on a closed queue")

        while not self.cancelled:
            try:
                self._queue.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def get(self) -> Optional[Any]:
        """
        Take the next item, blocking while the queue is empty and still open.

        Returns:
            The next item, or None once the queue is closed and drained or
            the queue was cancelled
        """
        while not self.cancelled:
            try:
                return self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self.closed:
                    # close() happens after the last put, so an empty queue
                    # seen after close is fully drained
                    try:
                        return self._queue.get_nowait()
                    except queue.Empty:
                        return None
        return None

    def close(self) -> None:
        """Signal that no more items will be put."""
        self._closed.set()

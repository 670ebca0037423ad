"""
Concurrent bulk loader for word embeddings.

A single producer (the calling thread) feeds records into a bounded queue
drained by a pool of worker threads. Each worker encodes the embedding as a
vector literal and issues one insert per record.

Failure policy:
- A failed insert is logged and the worker moves on; it is counted in
  LoadResult.failed and never raised
- Only a source that cannot be read raises (SourceError), after all
  workers have been joined
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, Optional, Union

from .. import codec
from ..core.exceptions import LoadRecordError, SourceError
from ..core.types import LoadResult, WordEmbedding
from ..records import JsonlRecordReader
from .work_queue import BoundedWorkQueue


logger = logging.getLogger(__name__)


DEFAULT_QUEUE_CAPACITY = 100


class _LoadTally:
    """Insert counters shared by all workers."""

    def __init__(self):
        self.attempted = 0
        self.inserted = 0
        self.failed = 0
        self._lock = threading.Lock()

    def record(self, success: bool) -> None:
        with self._lock:
            self.attempted += 1
            if success:
                self.inserted += 1
            else:
                self.failed += 1


class BulkLoader:
    """
    Loads WordEmbedding records into a vector store with a worker pool.

    The store must provide ``insert_embedding(word, vector_literal)`` and
    ``release_thread_connection()`` and be safe to call from several
    threads (PgVectorStore keeps one connection per thread; each worker
    releases its own on exit).

    Example:
        >>> loader = BulkLoader(store)
        >>> result = loader.load_file("embeddings.jsonl", worker_count=4)
        >>> print(result.inserted, result.failed)
    """

    def __init__(self, store, queue_capacity: int = DEFAULT_QUEUE_CAPACITY):
        """
        Initialize the loader.

        Args:
            store: Vector store receiving the inserts
            queue_capacity: Bound of the producer/consumer queue
        """
        self.store = store
        self.queue_capacity = queue_capacity

    def load(
        self,
        records: Iterable[WordEmbedding],
        worker_count: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> LoadResult:
        """
        Insert every record using ``worker_count`` workers.

        Returns only after the producer has finished and every worker has
        drained the queue and exited.

        Args:
            records: Source of records; iterated on the calling thread
            worker_count: Number of concurrent insert workers
            cancel_event: When set, the producer stops and workers exit

        Returns:
            LoadResult with attempt/insert/failure counts

        Raises:
            ValueError: If worker_count is less than 1
            SourceError: If the source fails while being read
        """
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")

        cancel_event = cancel_event or threading.Event()
        work_queue = BoundedWorkQueue(self.queue_capacity, cancel_event)
        tally = _LoadTally()
        start_time = time.time()
        source_error: Optional[SourceError] = None

        logger.info(
            f"Starting bulk load (workers={worker_count}, queue={self.queue_capacity})",
            extra={"stage": "load"},
        )

        executor = ThreadPoolExecutor(
            max_workers=worker_count,
            thread_name_prefix="load-worker",
        )
        futures = [
            executor.submit(self._worker_loop, f"worker-{i}", work_queue, tally)
            for i in range(worker_count)
        ]

        try:
            for record in records:
                if not work_queue.put(record):
                    logger.info("Load cancelled, producer stopping", extra={"stage": "load"})
                    break
        except SourceError as e:
            source_error = e
        finally:
            work_queue.close()
            wait(futures)
            executor.shutdown(wait=True)

        for i, future in enumerate(futures):
            if future.exception():
                logger.error(
                    f"Worker worker-{i} failed with error: {future.exception()}",
                    extra={"stage": "load"},
                )

        result = LoadResult(
            attempted=tally.attempted,
            inserted=tally.inserted,
            failed=tally.failed,
            duration_seconds=round(time.time() - start_time, 3),
        )

        if source_error is not None:
            logger.error(f"Bulk load aborted: {source_error}", extra={"stage": "load"})
            raise source_error

        logger.info(
            f"Bulk load complete: attempted={result.attempted}, "
            f"inserted={result.inserted}, failed={result.failed} "
            f"in {result.duration_seconds}s",
            extra={"stage": "load"},
        )
        return result

    def load_file(
        self,
        path: Union[str, Path],
        worker_count: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> LoadResult:
        """
        Load a JSONL record stream.

        Raises:
            SourceError: If the file cannot be opened (no worker is started)
                or fails while being read
        """
        with JsonlRecordReader(path) as reader:
            result = self.load(reader, worker_count, cancel_event=cancel_event)
            result.skipped_lines = reader.skipped_lines
        return result

    def _worker_loop(
        self,
        worker_id: str,
        work_queue: BoundedWorkQueue,
        tally: _LoadTally,
    ) -> None:
        """Take records until the queue is closed and drained."""
        log_extra = {"stage": "load", "worker_id": worker_id}
        processed = 0
        logger.debug(f"Worker {worker_id} starting", extra=log_extra)

        try:
            while True:
                record = work_queue.get()
                if record is None:
                    break

                try:
                    self.store.insert_embedding(record.word, codec.encode(record.embedding))
                    tally.record(success=True)
                except Exception as e:
                    tally.record(success=False)
                    word = getattr(record, "word", repr(record))
                    error = LoadRecordError(word, str(e))
                    logger.error(f"[{worker_id}] {error}", extra={**log_extra, "word": word})

                processed += 1
        finally:
            # Connection is per worker thread; close it before the thread is reused or dropped
            self.store.release_thread_connection()

        logger.debug(f"Worker {worker_id} stopped. Processed: {processed}", extra=log_extra)

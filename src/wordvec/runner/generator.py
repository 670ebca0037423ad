"""
Concurrent embedding generation.

Fans a word list out to the embedding client through a bounded
ThreadPoolExecutor:
- One task per word, at most ``concurrency_limit`` running at once
- Successful embeddings collected in a thread-safe accumulator
- Failed words logged and left out of the result
- Progress counted after every attempt, success or failure
- Optional cancellation via a threading.Event
"""

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import ClientError
from ..core.types import GenerationResult, ProgressCounter, WordEmbedding


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[int, int], None]


class EmbeddingAccumulator:
    """
    Thread-safe mapping from word to embedding.

    Inserting an existing word overwrites the previous vector.
    """

    def __init__(self):
        self._items: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def put(self, word: str, embedding: List[float]) -> None:
        with self._lock:
            self._items[word] = embedding

    def items(self) -> List[Tuple[str, List[float]]]:
        with self._lock:
            return list(self._items.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class _RunTally:
    """Per-run outcome counters."""

    def __init__(self):
        self.succeeded = 0
        self.failed = 0
        self.cancelled = 0
        self._lock = threading.Lock()

    def add(self, outcome: str) -> None:
        with self._lock:
            setattr(self, outcome, getattr(self, outcome) + 1)


class EmbeddingGenerator:
    """
    Generates embeddings for a word list with bounded concurrency.

    The client only needs a ``fetch(word, model)`` method that returns a
    vector or raises ``ClientError``.

    Example:
        >>> generator = EmbeddingGenerator(OllamaEmbeddingClient())
        >>> result = generator.generate(["cat", "dog"], concurrency_limit=50)
        >>> print(result.succeeded, result.failed)
    """

    def __init__(self, client):
        """
        Initialize the generator.

        Args:
            client: Embedding client used for every word
        """
        self.client = client

    def generate(
        self,
        words: Iterable[str],
        concurrency_limit: int,
        model: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationResult:
        """
        Embed every word and return the successful results.

        Returns only after every task has finished. Individual failures never
        fail the run.

        Args:
            words: Words to embed
            concurrency_limit: Maximum number of concurrent client calls
            model: Model identifier passed to the client
            on_progress: Called with (current, total) after each attempt
            cancel_event: When set, words not yet started are skipped

        Returns:
            GenerationResult with unordered WordEmbedding records and counts

        Raises:
            ValueError: If concurrency_limit is less than 1
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")

        words = list(words)
        run_id = str(uuid.uuid4())
        log_extra = {"run_id": run_id, "stage": "generate"}
        start_time = time.time()

        counter = ProgressCounter(len(words))
        accumulator = EmbeddingAccumulator()
        tally = _RunTally()

        logger.info(
            f"Generating embeddings for {len(words)} words "
            f"(concurrency={concurrency_limit}, model={model or 'default'})",
            extra=log_extra,
        )

        with ThreadPoolExecutor(
            max_workers=concurrency_limit,
            thread_name_prefix="embed-worker",
        ) as executor:
            futures = [
                executor.submit(
                    self._embed_word,
                    word,
                    model,
                    accumulator,
                    counter,
                    tally,
                    on_progress,
                    cancel_event,
                    log_extra,
                )
                for word in words
            ]
            wait(futures)

        # Tasks handle their own client failures; anything left is a bug in a callback
        for future in futures:
            future.result()

        result = GenerationResult(
            run_id=run_id,
            embeddings=[
                WordEmbedding.create(word, vector) for word, vector in accumulator.items()
            ],
            total=len(words),
            succeeded=tally.succeeded,
            failed=tally.failed,
            cancelled=tally.cancelled,
            duration_seconds=round(time.time() - start_time, 3),
        )

        logger.info(
            f"Generation complete: {len(result.embeddings)} embeddings, "
            f"succeeded={result.succeeded}, failed={result.failed}, "
            f"cancelled={result.cancelled} in {result.duration_seconds}s",
            extra=log_extra,
        )

        return result

    def _embed_word(
        self,
        word: str,
        model: Optional[str],
        accumulator: EmbeddingAccumulator,
        counter: ProgressCounter,
        tally: _RunTally,
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[threading.Event],
        log_extra: dict,
    ) -> None:
        """Embed one word inside an admitted executor slot."""
        if cancel_event is not None and cancel_event.is_set():
            tally.add("cancelled")
            return

        try:
            embedding = self.client.fetch(word, model)
            accumulator.put(word, embedding)
            tally.add("succeeded")
        except ClientError as e:
            tally.add("failed")
            logger.error(str(e), extra={**log_extra, "word": word})
        except Exception as e:
            tally.add("failed")
            logger.exception(
                f"Unexpected error embedding '{word}': {e}",
                extra={**log_extra, "word": word},
            )

        current = counter.increment()
        logger.debug(f"Progress: {current}/{counter.total}", extra=log_extra)
        if on_progress is not None:
            on_progress(current, counter.total)

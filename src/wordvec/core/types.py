"""
Core data types for the word vector pipeline.

Uses dataclasses throughout. Records handed between stages are frozen so a
stage cannot mutate what another stage produced.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple


Embedding = List[float]


@dataclass(frozen=True)
class WordEmbedding:
    """
    A word paired with its embedding vector.

    Attributes:
        word: The embedded word
        embedding: The vector returned by the embedding service
    """
    word: str
    embedding: Tuple[float, ...]

    @classmethod
    def create(cls, word: str, embedding: Sequence[float]) -> "WordEmbedding":
        """Create a record, copying the vector into an immutable tuple."""
        return cls(word=word, embedding=tuple(float(v) for v in embedding))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSONL record shape."""
        return {
            "word": self.word,
            "embedding": list(self.embedding),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WordEmbedding":
        """
        Create from a JSONL record.

        Raises:
            ValueError: If the word or embedding field is missing or malformed
        """
        word = data.get("word")
        embedding = data.get("embedding")
        if not isinstance(word, str) or not word:
            raise ValueError("record has no word")
        if not isinstance(embedding, list):
            raise ValueError(f"record for '{word}' has no embedding array")
        return cls.create(word, embedding)


@dataclass(frozen=True)
class SimilarityMatch:
    """
    A stored word ranked by distance to a query vector.

    Attributes:
        id: Store-assigned identifier
        word: The stored word
        distance: Distance to the query vector (smaller is more similar)
    """
    id: int
    word: str
    distance: float


class ProgressCounter:
    """Thread-safe count of completed attempts out of a known total."""

    def __init__(self, total: int):
        self.total = total
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        """Increment and return the new value."""
        with self._lock:
            self._value += 1
            return self._value


@dataclass
class GenerationResult:
    """
    Outcome of an embedding generation run.

    Attributes:
        run_id: Identifier used to tag log lines for this run
        embeddings: Successfully embedded words (unordered)
        total: Number of words submitted
        succeeded: Number of successful client calls
        failed: Number of failed client calls
        cancelled: Number of words skipped because the run was cancelled
        duration_seconds: Wall-clock duration of the run
    """
    run_id: str
    embeddings: List[WordEmbedding] = field(default_factory=list)
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    duration_seconds: float = 0.0

    def as_mapping(self) -> Dict[str, Tuple[float, ...]]:
        """Return the result as a word -> embedding mapping."""
        return {record.word: record.embedding for record in self.embeddings}


@dataclass
class LoadResult:
    """
    Outcome of a bulk load.

    Per-record failures are counted here and never raised.

    Attributes:
        attempted: Number of insert attempts made by workers
        inserted: Number of successful inserts
        failed: Number of failed inserts
        skipped_lines: Malformed source lines skipped before reaching the queue
        duration_seconds: Wall-clock duration of the load
    """
    attempted: int = 0
    inserted: int = 0
    failed: int = 0
    skipped_lines: int = 0
    duration_seconds: float = 0.0

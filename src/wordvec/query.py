"""
Nearest-neighbor retrieval.

Unlike the bulk loader, the read path does not tolerate bad rows: any store
failure or undecodable row fails the whole call with QueryError.
"""

import logging
import math
import time
from typing import Any, List, Sequence

from . import codec
from .core.exceptions import QueryError
from .core.types import SimilarityMatch


logger = logging.getLogger(__name__)


def nearest(query_vector: Sequence[float], limit: int, store) -> List[SimilarityMatch]:
    """
    Return the stored words nearest to a query vector.

    A ``limit`` of zero or less returns an empty list without touching the
    store.

    Args:
        query_vector: Query embedding
        limit: Maximum number of matches
        store: Store providing ``query_nearest(vector_literal, limit)``

    Returns:
        Matches ordered by ascending distance

    Raises:
        QueryError: If the store call fails or a row cannot be decoded
    """
    if limit <= 0:
        return []

    start_time = time.time()
    literal = codec.encode(query_vector)

    try:
        rows = store.query_nearest(literal, limit)
    except Exception as e:
        raise QueryError(f"Nearest-neighbor query failed: {e}") from e

    matches = [_decode_row(row) for row in rows]

    execution_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Retrieved {len(matches)} matches (limit={limit}) in {execution_ms}ms")

    return matches


def _decode_row(row: Sequence[Any]) -> SimilarityMatch:
    """Convert a (id, word, distance) row into a SimilarityMatch."""
    try:
        row_id, word, distance = row
    except (TypeError, ValueError) as e:
        raise QueryError(f"Unexpected row shape {row!r}: {e}") from e

    if not isinstance(word, str):
        raise QueryError(f"Row {row_id!r} has non-text word: {word!r}")

    try:
        row_id = int(row_id)
        distance = float(distance)
    except (TypeError, ValueError) as e:
        raise QueryError(f"Cannot decode row {row!r}: {e}") from e

    if math.isnan(distance) or distance < 0:
        raise QueryError(f"Row {row_id} has invalid distance {distance}")

    return SimilarityMatch(id=row_id, word=word, distance=distance)

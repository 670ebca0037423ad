"""
Core subpackage for the word vector pipeline.

Contains types, exceptions, and logging utilities.
"""

from .types import (
    Embedding,
    WordEmbedding,
    SimilarityMatch,
    ProgressCounter,
    GenerationResult,
    LoadResult,
)
from .exceptions import (
    WordVecError,
    ClientError,
    ParseError,
    LoadRecordError,
    SourceError,
    QueryError,
    ConfigError,
)

__all__ = [
    # Types
    "Embedding",
    "WordEmbedding",
    "SimilarityMatch",
    "ProgressCounter",
    "GenerationResult",
    "LoadResult",
    # Exceptions
    "WordVecError",
    "ClientError",
    "ParseError",
    "LoadRecordError",
    "SourceError",
    "QueryError",
    "ConfigError",
]

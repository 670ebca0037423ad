"""
Runner module for the concurrent pipeline stages.
"""

from .generator import EmbeddingGenerator, EmbeddingAccumulator
from .loader import BulkLoader, DEFAULT_QUEUE_CAPACITY
from .work_queue import BoundedWorkQueue

__all__ = [
    "EmbeddingGenerator",
    "EmbeddingAccumulator",
    "BulkLoader",
    "DEFAULT_QUEUE_CAPACITY",
    "BoundedWorkQueue",
]

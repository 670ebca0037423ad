"""
Shared test fixtures and configuration for pytest.
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wordvec import codec
from wordvec.core.exceptions import ClientError


logger = logging.getLogger(__name__)


# ============================================================================
# Environment detection
# ============================================================================

def get_test_connection_string() -> Optional[str]:
    """Connection string for the integration database, if configured."""
    return os.environ.get("WORDVEC_TEST_CONNECTION_STRING")


def is_postgres_available() -> bool:
    """Check if PostgreSQL with pgvector is reachable through pyodbc."""
    connection_string = get_test_connection_string()
    if not connection_string:
        return False

    try:
        import pyodbc

        conn = pyodbc.connect(connection_string, timeout=5)
        conn.close()
        return True

    except Exception as e:
        logger.debug(f"PostgreSQL not available: {e}")
        return False


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Automatically skip integration tests if PostgreSQL is not available."""
    if not any("integration" in item.keywords for item in items):
        return
    if is_postgres_available():
        return

    skip_postgres = pytest.mark.skip(
        reason="PostgreSQL not available (set WORDVEC_TEST_CONNECTION_STRING)"
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_postgres)


# ============================================================================
# Fakes
# ============================================================================

class FakeEmbeddingClient:
    """
    Scripted embedding client that records call concurrency.

    Args:
        vectors: word -> vector returned on success
        failing: words that raise ClientError
        delay: seconds each call holds its slot
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        failing: Optional[set] = None,
        delay: float = 0.0,
    ):
        self.vectors = vectors or {}
        self.failing = failing or set()
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def fetch(self, word: str, model: Optional[str] = None) -> List[float]:
        with self._lock:
            self.calls.append(word)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                threading.Event().wait(self.delay)
            if word in self.failing:
                raise ClientError(word, "HTTP 500: scripted failure", status_code=500)
            return list(self.vectors.get(word, [float(len(word)), 1.0]))
        finally:
            with self._lock:
                self.active -= 1


class FakeVectorStore:
    """
    In-memory store that records inserts and answers queries by
    Euclidean distance.

    Args:
        fail_words: words whose insert raises
        rows: preset (id, word, embedding) rows for queries
    """

    def __init__(self, fail_words: Optional[set] = None, rows: Optional[list] = None, delay: float = 0.0):
        self.fail_words = fail_words or set()
        self.rows = list(rows or [])
        self.delay = delay
        self.insert_calls: List[tuple] = []
        self.query_calls: List[tuple] = []
        self.threads = set()
        self.released = 0
        self._lock = threading.Lock()

    def insert_embedding(self, word: str, vector_literal: str) -> None:
        with self._lock:
            self.insert_calls.append((word, vector_literal))
            self.threads.add(threading.current_thread().name)
        if self.delay:
            threading.Event().wait(self.delay)
        if word in self.fail_words:
            raise RuntimeError(f"duplicate key value for {word}")
        with self._lock:
            self.rows.append((len(self.rows) + 1, word, codec.decode(vector_literal)))

    def release_thread_connection(self) -> None:
        with self._lock:
            self.released += 1

    def query_nearest(self, vector_literal: str, limit: int) -> list:
        self.query_calls.append((vector_literal, limit))
        query = codec.decode(vector_literal)
        scored = []
        for row_id, word, embedding in self.rows:
            distance = sum((a - b) ** 2 for a, b in zip(query, embedding)) ** 0.5
            scored.append((row_id, word, distance))
        scored.sort(key=lambda row: row[2])
        return scored[:limit]


@pytest.fixture
def fake_client():
    """Fixture providing a scripted embedding client."""
    return FakeEmbeddingClient()


@pytest.fixture
def fake_store():
    """Fixture providing an in-memory vector store."""
    return FakeVectorStore()


@pytest.fixture
def client_factory():
    """Fixture providing the scripted client class for custom setups."""
    return FakeEmbeddingClient


@pytest.fixture
def store_factory():
    """Fixture providing the in-memory store class for custom setups."""
    return FakeVectorStore

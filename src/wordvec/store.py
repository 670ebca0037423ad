"""
pgvector store - database operations for the word table.

Talks to PostgreSQL with the pgvector extension through pyodbc (psqlODBC
driver). Issues two statement shapes:
- INSERT of (word, embedding) with the embedding as a vector literal
- Nearest-neighbor SELECT ordered by ``embedding <-> query``

Each thread gets its own connection so loader workers never share one.
"""

import logging
import re
import threading
from typing import Any, List, Optional, Sequence

try:
    import pyodbc
except ImportError:
    pyodbc = None


logger = logging.getLogger(__name__)


DEFAULT_TABLE = "words"
DEFAULT_DRIVER = "PostgreSQL Unicode"

# Driver errors surfaced to callers (empty when pyodbc is missing)
DATABASE_ERRORS = (pyodbc.Error,) if pyodbc is not None else ()

_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]{0,62}(\.[a-zA-Z_][a-zA-Z0-9_]{0,62})?$")


def is_valid_table_name(name: str) -> bool:
    """
    Validate that a name is a safe table identifier.

    Accepts ``table`` or ``schema.table`` where each part starts with a
    letter or underscore and contains only letters, digits, and underscores.
    """
    return bool(name) and _IDENTIFIER_PATTERN.match(name) is not None


def build_connection_string(
    host: str = "localhost",
    port: int = 5432,
    database: str = "postgres",
    username: str = "postgres",
    password: Optional[str] = None,
    driver: str = DEFAULT_DRIVER,
) -> str:
    """Build an ODBC connection string for PostgreSQL."""
    return (
        f"Driver={{{driver}}};"
        f"Server={host};"
        f"Port={port};"
        f"Database={database};"
        f"Uid={username};"
        f"Pwd={password or ''};"
    )


class PgVectorStore:
    """
    Storage interface for the word embedding table.

    Expected table shape::

        CREATE TABLE words (
            id        BIGSERIAL PRIMARY KEY,
            word      TEXT NOT NULL,
            embedding vector(N) NOT NULL
        )
    """

    def __init__(self, connection_string: str, table: str = DEFAULT_TABLE):
        """
        Initialize the store.

        Connections are opened lazily, one per calling thread.

        Args:
            connection_string: Full ODBC connection string
            table: Table name (``table`` or ``schema.table``)
        """
        if pyodbc is None:
            raise ImportError(
                "pyodbc is required for PgVectorStore. "
                "Install with: pip install pyodbc"
            )

        if not is_valid_table_name(table):
            raise ValueError(f"Invalid table name: {table}")

        self.connection_string = connection_string
        self.table = table

        self._thread_local = threading.local()
        self._connections = []
        self._connections_lock = threading.Lock()

    def _get_conn(self):
        """Get (or create) a thread-local connection for safe concurrent use."""
        conn = getattr(self._thread_local, "conn", None)
        if conn is None:
            conn = pyodbc.connect(self.connection_string)
            self._thread_local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
            logger.debug(f"Opened connection for {threading.current_thread().name}")
        return conn

    def release_thread_connection(self) -> None:
        """Close the calling thread's connection, if it opened one."""
        conn = getattr(self._thread_local, "conn", None)
        if conn is None:
            return
        self._thread_local.conn = None
        with self._connections_lock:
            if conn in self._connections:
                self._connections.remove(conn)
        try:
            conn.close()
        except pyodbc.Error as e:
            logger.warning(f"Error closing connection: {e}")
        logger.debug(f"Released connection for {threading.current_thread().name}")

    def ensure_schema(self, dimensions: int) -> None:
        """
        Create the vector extension and the word table if missing.

        Args:
            dimensions: Embedding dimensionality for the vector column
        """
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")

        conn = self._get_conn()
        cursor = conn.cursor()
        try:
            cursor.execute("CREATE EXTENSION IF NOT EXISTS vector")
            # Table name is validated in __init__; identifiers cannot be parameters
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    id BIGSERIAL PRIMARY KEY,
                    word TEXT NOT NULL,
                    embedding vector({int(dimensions)}) NOT NULL
                )
            """)
            conn.commit()
            logger.info(f"Ensured table {self.table} with vector({dimensions})")
        except pyodbc.Error as e:
            logger.error(f"Failed to initialize schema: {e}")
            conn.rollback()
            raise

    def insert_embedding(self, word: str, vector_literal: str) -> None:
        """
        Insert one word with its embedding.

        Args:
            word: The word
            vector_literal: Embedding encoded as ``[v0,v1,...]``
        """
        conn = self._get_conn()
        cursor = conn.cursor()
        try:
            cursor.execute(
                f"INSERT INTO {self.table} (word, embedding) VALUES (?, CAST(? AS vector))",
                (word, vector_literal),
            )
            conn.commit()
        except pyodbc.Error:
            conn.rollback()
            raise

    def query_nearest(self, vector_literal: str, limit: int) -> List[Sequence[Any]]:
        """
        Select the ``limit`` rows nearest to a query vector.

        Args:
            vector_literal: Query vector encoded as ``[v0,v1,...]``
            limit: Maximum number of rows

        Returns:
            Rows of (id, word, distance), nearest first
        """
        conn = self._get_conn()
        cursor = conn.cursor()
        cursor.execute(
            f"""
            SELECT id, word, embedding <-> CAST(? AS vector) AS distance
            FROM {self.table}
            ORDER BY distance
            LIMIT ?
            """,
            (vector_literal, limit),
        )
        return cursor.fetchall()

    def close(self) -> None:
        """Close every connection opened by this store."""
        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for conn in connections:
            try:
                conn.close()
            except pyodbc.Error as e:
                logger.warning(f"Error closing connection: {e}")
        self._thread_local = threading.local()

    def __enter__(self) -> "PgVectorStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()

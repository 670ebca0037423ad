"""
Word Vector Pipeline

This package turns a list of words into embeddings, bulk loads them into a
pgvector-enabled PostgreSQL table, and answers nearest-neighbor queries
against that table.

Key components:
- core/: Types, exceptions, and logging utilities
- codec.py: Vector literal encoding/decoding
- providers/: Embedding service client (Ollama)
- runner/: Concurrent embedding generation and bulk loading
- store.py: Database operations for the word table
- query.py: Nearest-neighbor retrieval
- records.py: Word list and JSONL record stream I/O
- cli.py: Command line entry point
"""

__version__ = "0.1.0"

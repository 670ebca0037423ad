"""
Embedding service clients.
"""

from .ollama_client import OllamaEmbeddingClient, DEFAULT_BASE_URL, DEFAULT_EMBED_MODEL

__all__ = ["OllamaEmbeddingClient", "DEFAULT_BASE_URL", "DEFAULT_EMBED_MODEL"]

"""
Ollama embedding client.

Thin HTTP client for Ollama's ``/api/embeddings`` endpoint. One call embeds
one word. The client never retries; callers decide what to do with a
``ClientError``.
"""

import json
import logging
import numbers
from http.client import HTTPException
from typing import List, Optional
from urllib.request import Request, urlopen
from urllib.error import URLError, HTTPError

from ..core.exceptions import ClientError


logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_EMBED_MODEL = "nomic-embed-text"


class OllamaEmbeddingClient:
    """
    HTTP client for Ollama embeddings.

    Safe to share between threads: each call opens its own request.

    Example:
        >>> client = OllamaEmbeddingClient("http://localhost:11434")
        >>> vector = client.fetch("cat")
        >>> print(len(vector))  # 768 for nomic-embed-text
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_EMBED_MODEL,
        timeout: float = 120,
    ):
        """
        Initialize the client.

        Args:
            base_url: Ollama server base URL
            model: Default embedding model identifier
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/api/embeddings"

    def fetch(self, word: str, model: Optional[str] = None) -> List[float]:
        """
        Fetch the embedding for a single word.

        Args:
            word: The word to embed
            model: Model identifier (defaults to the client's model)

        Returns:
            Non-empty list of floats

        Raises:
            ClientError: On transport failure, non-success status, malformed
                body, or an empty embedding
        """
        payload = {
            "model": model or self.model,
            "prompt": word,
        }
        data = json.dumps(payload).encode("utf-8")
        request = Request(
            self.endpoint,
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        logger.debug(f"Embedding request for '{word}' to {self.endpoint} with model {payload['model']}")

        try:
            with urlopen(request, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace") if e.fp else str(e)
            raise ClientError(word, f"HTTP {e.code}: {error_body}", status_code=e.code)
        except URLError as e:
            raise ClientError(word, f"failed to connect to {self.base_url}: {e.reason}")
        except (OSError, ValueError, HTTPException) as e:
            raise ClientError(word, f"request failed: {e}")

        return self._parse_embedding(word, body)

    def _parse_embedding(self, word: str, body: str) -> List[float]:
        """Extract the embedding array from a response body."""
        try:
            result = json.loads(body)
        except json.JSONDecodeError as e:
            raise ClientError(word, f"invalid JSON response: {e}")

        if not isinstance(result, dict):
            raise ClientError(word, "response is not a JSON object")

        embedding = result.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            raise ClientError(word, "response contains no embedding")

        if not all(
            isinstance(v, numbers.Real) and not isinstance(v, bool) for v in embedding
        ):
            raise ClientError(word, "embedding contains non-numeric values")

        return [float(v) for v in embedding]

"""
Unit tests for the Ollama embedding client.

Tests for:
- Request payload and endpoint
- Successful embedding parsing
- Failure mapping to ClientError
"""

import io
import json
import pytest
from unittest.mock import patch, MagicMock
from urllib.error import HTTPError, URLError

from wordvec.core.exceptions import ClientError
from wordvec.providers.ollama_client import OllamaEmbeddingClient


def _mock_response(body: bytes) -> MagicMock:
    response = MagicMock()
    response.read.return_value = body
    response.__enter__ = lambda s: response
    response.__exit__ = MagicMock(return_value=False)
    return response


@pytest.fixture
def client():
    """Create a test client."""
    return OllamaEmbeddingClient("http://localhost:11434/", model="nomic-embed-text", timeout=30)


class TestOllamaEmbeddingClient:
    """Tests for OllamaEmbeddingClient."""

    def test_initialization(self, client):
        """Test client initialization strips the trailing slash."""
        assert client.base_url == "http://localhost:11434"
        assert client.endpoint == "http://localhost:11434/api/embeddings"
        assert client.model == "nomic-embed-text"
        assert client.timeout == 30

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_fetch_success(self, mock_urlopen, client):
        """Test successful embedding request."""
        mock_urlopen.return_value = _mock_response(
            json.dumps({"embedding": [0.1, -0.2, 3]}).encode("utf-8")
        )

        vector = client.fetch("cat")

        assert vector == [0.1, -0.2, 3.0]
        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "http://localhost:11434/api/embeddings"
        assert request.get_method() == "POST"
        assert json.loads(request.data) == {"model": "nomic-embed-text", "prompt": "cat"}
        assert mock_urlopen.call_args[1]["timeout"] == 30

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_fetch_model_override(self, mock_urlopen, client):
        """Test the model argument overrides the default."""
        mock_urlopen.return_value = _mock_response(b'{"embedding": [1.0]}')

        client.fetch("dog", model="mxbai-embed-large")

        request = mock_urlopen.call_args[0][0]
        assert json.loads(request.data)["model"] == "mxbai-embed-large"

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_http_error(self, mock_urlopen, client):
        """Test non-success status becomes ClientError with the body."""
        mock_urlopen.side_effect = HTTPError(
            "http://localhost:11434/api/embeddings",
            404,
            "Not Found",
            {},
            io.BytesIO(b'{"error":"model not found"}'),
        )

        with pytest.raises(ClientError) as exc_info:
            client.fetch("cat")

        assert exc_info.value.word == "cat"
        assert exc_info.value.status_code == 404
        assert "model not found" in exc_info.value.cause

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_connection_error(self, mock_urlopen, client):
        """Test transport failure becomes ClientError."""
        mock_urlopen.side_effect = URLError("Connection refused")

        with pytest.raises(ClientError) as exc_info:
            client.fetch("cat")

        assert "Connection refused" in exc_info.value.cause
        assert exc_info.value.status_code is None

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_timeout(self, mock_urlopen, client):
        """Test socket timeout becomes ClientError."""
        mock_urlopen.side_effect = TimeoutError("timed out")

        with pytest.raises(ClientError):
            client.fetch("cat")

    @pytest.mark.parametrize("body", [
        b"not json",
        b'["embedding"]',
        b"{}",
        b'{"embedding": []}',
        b'{"embedding": null}',
        b'{"embedding": ["a", "b"]}',
        b'{"embedding": [true, false]}',
    ])
    @patch("wordvec.providers.ollama_client.urlopen")
    def test_unusable_body(self, mock_urlopen, body, client):
        """Test malformed or empty bodies become ClientError."""
        mock_urlopen.return_value = _mock_response(body)

        with pytest.raises(ClientError) as exc_info:
            client.fetch("cat")

        assert exc_info.value.word == "cat"

    @patch("wordvec.providers.ollama_client.urlopen")
    def test_no_retry(self, mock_urlopen, client):
        """Test a failure results in exactly one request."""
        mock_urlopen.side_effect = URLError("Connection refused")

        with pytest.raises(ClientError):
            client.fetch("cat")

        assert mock_urlopen.call_count == 1

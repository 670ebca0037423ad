"""
Custom exceptions for the word vector pipeline.
"""


class WordVecError(Exception):
    """Base exception for all pipeline errors."""
    pass


class ClientError(WordVecError):
    """
    The embedding service returned no usable embedding for one word.

    Raised when:
    - The service is unreachable or the request times out
    - The service returns a non-success status
    - The response body is not valid JSON
    - The embedding array is missing or empty
    """

    def __init__(self, word: str, cause: str, status_code: int = None):
        super().__init__(f"Embedding failed for '{word}': {cause}")
        self.word = word
        self.cause = cause
        self.status_code = status_code


class ParseError(WordVecError):
    """A vector literal could not be decoded."""

    def __init__(self, message: str, token: str = None):
        super().__init__(message)
        self.token = token


class LoadRecordError(WordVecError):
    """A single insert failed during bulk loading."""

    def __init__(self, word: str, cause: str):
        super().__init__(f"Failed to insert '{word}': {cause}")
        self.word = word
        self.cause = cause


class SourceError(WordVecError):
    """
    The word list or record stream could not be opened or read.

    Fatal to the operation it belongs to.
    """

    def __init__(self, path: str, cause: str):
        super().__init__(f"Cannot read source {path}: {cause}")
        self.path = path
        self.cause = cause


class QueryError(WordVecError):
    """
    A nearest-neighbor query failed.

    Raised when:
    - The store call fails
    - A result row cannot be decoded into (id, word, distance)
    """
    pass


class ConfigError(WordVecError):
    """
    Error in pipeline configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Configuration values are out of valid range
    """
    pass

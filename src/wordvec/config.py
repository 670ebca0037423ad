"""
Configuration for the word vector pipeline.

Values come from defaults, an optional YAML file, and environment variables,
in that order of precedence (environment wins).

Example YAML::

    ollama:
      base_url: http://localhost:11434
      embed_model: nomic-embed-text
      timeout_seconds: 120
    generate:
      concurrency: 50
    load:
      workers: 4
    database:
      connection_string: "Driver={PostgreSQL Unicode};Server=localhost;..."
      table: words
    query:
      limit: 10
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core.exceptions import ConfigError
from .providers.ollama_client import DEFAULT_BASE_URL, DEFAULT_EMBED_MODEL
from .store import DEFAULT_DRIVER, DEFAULT_TABLE, build_connection_string, is_valid_table_name


logger = logging.getLogger(__name__)


DEFAULT_CONCURRENCY = 50
DEFAULT_LOAD_WORKERS = 4
DEFAULT_QUERY_LIMIT = 10
DEFAULT_TIMEOUT_SECONDS = 120.0

# Any of these builds the connection string from parts
PG_ENV_VARS = (
    "WORDVEC_PG_HOST",
    "WORDVEC_PG_PORT",
    "WORDVEC_PG_DATABASE",
    "WORDVEC_PG_USER",
    "WORDVEC_PG_PASSWORD",
    "WORDVEC_PG_DRIVER",
)


@dataclass
class PipelineConfig:
    """
    Configuration for all pipeline stages.

    Attributes:
        ollama_base_url: Base URL of the Ollama server
        embed_model: Embedding model identifier
        request_timeout_seconds: Timeout for one embedding request
        concurrency: Maximum concurrent embedding requests
        load_workers: Number of bulk load workers
        connection_string: ODBC connection string for PostgreSQL
        table: Word table name
        query_limit: Default number of nearest neighbors to return
    """
    ollama_base_url: str = DEFAULT_BASE_URL
    embed_model: str = DEFAULT_EMBED_MODEL
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    concurrency: int = DEFAULT_CONCURRENCY
    load_workers: int = DEFAULT_LOAD_WORKERS
    connection_string: Optional[str] = None
    table: str = DEFAULT_TABLE
    query_limit: int = DEFAULT_QUERY_LIMIT

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create config from defaults plus environment variables."""
        config = cls()
        config.apply_env_overrides()
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PipelineConfig":
        """
        Load config from a YAML file, then apply environment overrides.

        Raises:
            ConfigError: If the file is missing or not valid YAML
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        logger.info(f"Loading config from: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        config = cls.from_dict(data)
        config.apply_env_overrides()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """Create from a nested dictionary in the YAML layout."""
        ollama = data.get("ollama") or {}
        generate = data.get("generate") or {}
        load = data.get("load") or {}
        database = data.get("database") or {}
        query = data.get("query") or {}

        try:
            return cls(
                ollama_base_url=ollama.get("base_url", DEFAULT_BASE_URL),
                embed_model=ollama.get("embed_model", DEFAULT_EMBED_MODEL),
                request_timeout_seconds=float(ollama.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
                concurrency=int(generate.get("concurrency", DEFAULT_CONCURRENCY)),
                load_workers=int(load.get("workers", DEFAULT_LOAD_WORKERS)),
                connection_string=database.get("connection_string"),
                table=database.get("table", DEFAULT_TABLE),
                query_limit=int(query.get("limit", DEFAULT_QUERY_LIMIT)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}")

    def apply_env_overrides(self) -> None:
        """Apply environment variable overrides in place."""
        env = os.environ
        try:
            if env.get("OLLAMA_BASE_URL"):
                self.ollama_base_url = env["OLLAMA_BASE_URL"]
            if env.get("OLLAMA_EMBED_MODEL"):
                self.embed_model = env["OLLAMA_EMBED_MODEL"]
            if env.get("WORDVEC_REQUEST_TIMEOUT"):
                self.request_timeout_seconds = float(env["WORDVEC_REQUEST_TIMEOUT"])
            if env.get("WORDVEC_CONCURRENCY"):
                self.concurrency = int(env["WORDVEC_CONCURRENCY"])
            if env.get("WORDVEC_LOAD_WORKERS"):
                self.load_workers = int(env["WORDVEC_LOAD_WORKERS"])
            if env.get("WORDVEC_TABLE"):
                self.table = env["WORDVEC_TABLE"]
            if env.get("WORDVEC_QUERY_LIMIT"):
                self.query_limit = int(env["WORDVEC_QUERY_LIMIT"])
            if env.get("WORDVEC_PG_PORT"):
                port = int(env["WORDVEC_PG_PORT"])
            else:
                port = 5432
        except ValueError as e:
            raise ConfigError(f"Invalid environment value: {e}")

        if env.get("WORDVEC_DB_CONNECTION_STRING"):
            self.connection_string = env["WORDVEC_DB_CONNECTION_STRING"]
        elif any(env.get(name) for name in PG_ENV_VARS):
            self.connection_string = build_connection_string(
                host=env.get("WORDVEC_PG_HOST", "localhost"),
                port=port,
                database=env.get("WORDVEC_PG_DATABASE", "postgres"),
                username=env.get("WORDVEC_PG_USER", "postgres"),
                password=env.get("WORDVEC_PG_PASSWORD"),
                driver=env.get("WORDVEC_PG_DRIVER", DEFAULT_DRIVER),
            )

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigError: If any value is out of range
        """
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.load_workers < 1:
            raise ConfigError(f"load_workers must be >= 1, got {self.load_workers}")
        if self.request_timeout_seconds <= 0:
            raise ConfigError(
                f"request_timeout_seconds must be > 0, got {self.request_timeout_seconds}"
            )
        if not is_valid_table_name(self.table):
            raise ConfigError(f"Invalid table name: {self.table}")

    def require_connection_string(self) -> str:
        """Return the connection string or raise ConfigError if unset."""
        if not self.connection_string:
            raise ConfigError(
                "No database configured. Set WORDVEC_DB_CONNECTION_STRING "
                "or WORDVEC_PG_PASSWORD (with WORDVEC_PG_HOST etc.)"
            )
        return self.connection_string

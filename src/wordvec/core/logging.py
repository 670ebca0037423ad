"""
Logging utilities for the word vector pipeline.

Provides human-readable and JSON-structured formatters that carry the
pipeline's context fields (run_id, worker_id, word) when they are passed
through the ``extra`` parameter of a logging call.
"""

import json
import logging
import sys
from datetime import datetime, timezone


CONTEXT_FIELDS = ("run_id", "worker_id", "stage", "word")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Context fields if present (run_id, worker_id, stage, word)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [run_id=X worker_id=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context suffix."""
        base = super().format(record)

        context_parts = []
        for name in ("run_id", "worker_id", "stage"):
            value = getattr(record, name, None)
            if value is not None:
                context_parts.append(f"{name}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    include_timestamp: bool = True,
    structured: bool = False,
) -> logging.Logger:
    """
    Configure the ``wordvec`` package logger.

    Log output goes to stderr so that it does not interleave with data
    written to stdout. Handlers are only added once.

    Args:
        level: Logging level (default: INFO)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger("wordvec")
    package_logger.setLevel(level)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    else:
        for handler in package_logger.handlers:
            handler.setLevel(level)

    return package_logger

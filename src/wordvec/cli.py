"""
Command line entry point for the word vector pipeline.

Usage:
    wordvec generate wordDictionary.txt -o embeddings.jsonl --concurrency 50
    wordvec load embeddings.jsonl --workers 4 --init-schema --dimensions 768
    wordvec query --word cat --limit 5
    wordvec query --vector "[0.1,0.2,...]" --limit 5

Database settings come from --config or the WORDVEC_* environment variables.
"""

import argparse
import logging
import signal
import sys
import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from . import codec
from .config import PipelineConfig
from .core.exceptions import ConfigError, WordVecError
from .core.logging import configure_logging
from .providers.ollama_client import OllamaEmbeddingClient
from .query import nearest
from .records import read_words, write_records
from .runner.generator import EmbeddingGenerator
from .runner.loader import BulkLoader
from .store import DATABASE_ERRORS, PgVectorStore


logger = logging.getLogger(__name__)

# Errors that end a command with exit code 1 instead of a traceback
FATAL_ERRORS = (WordVecError, ValueError, OSError) + DATABASE_ERRORS


@contextmanager
def cancel_on_signal() -> Iterator[threading.Event]:
    """Set the yielded event on SIGINT/SIGTERM instead of aborting."""
    cancel_event = threading.Event()
    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)

    def _handle_shutdown_signal(signum, frame):
        logger.info(f"Received signal {signum}, finishing in-flight work...")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handle_shutdown_signal)
    signal.signal(signal.SIGTERM, _handle_shutdown_signal)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)


def print_progress(current: int, total: int) -> None:
    """Render a single-line progress indicator on stderr."""
    sys.stderr.write(f"\rProgress: {current}/{total}")
    sys.stderr.flush()


def build_client(config: PipelineConfig) -> OllamaEmbeddingClient:
    return OllamaEmbeddingClient(
        base_url=config.ollama_base_url,
        model=config.embed_model,
        timeout=config.request_timeout_seconds,
    )


def cmd_generate(args: argparse.Namespace, config: PipelineConfig) -> int:
    """Generate embeddings for a word list and write them as JSONL."""
    start_time = time.time()
    words = read_words(args.words_file)

    concurrency = args.concurrency if args.concurrency is not None else config.concurrency
    generator = EmbeddingGenerator(build_client(config))
    print("Generating embeddings...")

    with cancel_on_signal() as cancel_event:
        result = generator.generate(
            words,
            concurrency_limit=concurrency,
            model=args.model or config.embed_model,
            on_progress=None if args.no_progress else print_progress,
            cancel_event=cancel_event,
        )

    if not args.no_progress:
        sys.stderr.write("\n")

    count = write_records(result.embeddings, args.output)
    elapsed = round(time.time() - start_time, 2)

    print(f"{count} embeddings written to {args.output} in {elapsed}s")
    if result.failed:
        print(f"  Failed: {result.failed}")
    if result.cancelled:
        print(f"  Cancelled: {result.cancelled}")
    return 0


def cmd_load(args: argparse.Namespace, config: PipelineConfig) -> int:
    """Bulk load a JSONL record stream into the word table."""
    workers = args.workers if args.workers is not None else config.load_workers
    with PgVectorStore(config.require_connection_string(), table=config.table) as store:
        if args.init_schema:
            if args.dimensions is None:
                raise ConfigError("--init-schema requires --dimensions")
            store.ensure_schema(args.dimensions)

        loader = BulkLoader(store)
        with cancel_on_signal() as cancel_event:
            result = loader.load_file(
                args.records_file,
                worker_count=workers,
                cancel_event=cancel_event,
            )

    print("Load complete:")
    print(f"  Attempted: {result.attempted}")
    print(f"  Inserted: {result.inserted}")
    print(f"  Failed: {result.failed}")
    print(f"  Skipped lines: {result.skipped_lines}")
    print(f"  Duration: {result.duration_seconds}s")
    return 0


def cmd_query(args: argparse.Namespace, config: PipelineConfig) -> int:
    """Print the words nearest to a vector or to a word's embedding."""
    if args.vector is not None:
        query_vector = codec.decode(args.vector)
    else:
        query_vector = build_client(config).fetch(args.word, config.embed_model)

    limit = args.limit if args.limit is not None else config.query_limit

    with PgVectorStore(config.require_connection_string(), table=config.table) as store:
        matches = nearest(query_vector, limit, store)

    for match in matches:
        print(f"{match.id}\t{match.word}\t{match.distance:.6f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wordvec",
        description="Generate, store, and query word embeddings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--structured-logs",
        action="store_true",
        help="Emit JSON log lines instead of human-readable ones",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate embeddings for a word list")
    generate.add_argument("words_file", help="Word list, one word per line")
    generate.add_argument(
        "--output", "-o", default="embeddings.jsonl", help="JSONL output path (default: embeddings.jsonl)"
    )
    generate.add_argument("--concurrency", type=int, default=None, help="Concurrent requests (default: 50)")
    generate.add_argument("--model", type=str, default=None, help="Embedding model (default: from config)")
    generate.add_argument("--no-progress", action="store_true", help="Do not print the progress line")
    generate.set_defaults(func=cmd_generate)

    load = subparsers.add_parser("load", help="Bulk load a JSONL record stream")
    load.add_argument("records_file", help="JSONL file produced by 'generate'")
    load.add_argument("--workers", type=int, default=None, help="Insert workers (default: 4)")
    load.add_argument("--init-schema", action="store_true", help="Create extension and table if missing")
    load.add_argument("--dimensions", type=int, default=None, help="Vector dimensions for --init-schema")
    load.set_defaults(func=cmd_load)

    query = subparsers.add_parser("query", help="Find the nearest stored words")
    target = query.add_mutually_exclusive_group(required=True)
    target.add_argument("--vector", type=str, help="Query vector literal, e.g. [0.1,0.2]")
    target.add_argument("--word", type=str, help="Embed this word and use it as the query")
    query.add_argument("--limit", type=int, default=None, help="Number of matches (default: 10)")
    query.set_defaults(func=cmd_query)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.structured_logs,
    )

    try:
        config = PipelineConfig.from_file(args.config) if args.config else PipelineConfig.from_env()
        config.validate()
        return args.func(args, config)
    except FATAL_ERRORS as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

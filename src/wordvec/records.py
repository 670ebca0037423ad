"""
Word list and record stream I/O.

The record stream is the hand-off between generation and loading: one JSON
object per line, ``{"word": str, "embedding": [float, ...]}``.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from .core.exceptions import SourceError
from .core.types import WordEmbedding


logger = logging.getLogger(__name__)


PathLike = Union[str, Path]


def read_words(path: PathLike) -> List[str]:
    """
    Read a word list, one word per line.

    Lines are trimmed and blank lines are skipped.

    Raises:
        SourceError: If the file cannot be opened or read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            words = [line.strip() for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise SourceError(str(path), str(e))

    words = [word for word in words if word]
    logger.info(f"Read {len(words)} words from {path}")
    return words


def write_records(records: Iterable[WordEmbedding], path: PathLike) -> int:
    """
    Write records as JSONL.

    Returns:
        Number of records written
    """
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record.to_dict(), ensure_ascii=False))
            f.write("\n")
            count += 1
    logger.debug(f"Wrote {count} records to {path}")
    return count


class JsonlRecordReader:
    """
    Iterates WordEmbedding records from a JSONL file.

    Malformed lines are logged and skipped; ``skipped_lines`` counts them.
    The file is opened by ``open()`` so an unreadable source is reported
    before any consumer starts.

    Example:
        >>> with JsonlRecordReader("embeddings.jsonl") as reader:
        ...     for record in reader:
        ...         print(record.word)
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.skipped_lines = 0
        self._file = None

    def open(self) -> "JsonlRecordReader":
        """
        Open the underlying file.

        Raises:
            SourceError: If the file cannot be opened
        """
        if self._file is None:
            try:
                self._file = open(self.path, "r", encoding="utf-8")
            except OSError as e:
                raise SourceError(str(self.path), str(e))
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "JsonlRecordReader":
        return self.open()

    def __exit__(self, *args) -> None:
        self.close()

    def __iter__(self) -> Iterator[WordEmbedding]:
        self.open()
        line_number = 0
        try:
            for line in self._file:
                line_number += 1
                record = self._parse_line(line, line_number)
                if record is not None:
                    yield record
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(str(self.path), f"read failed at line {line_number}: {e}")

    def _parse_line(self, line: str, line_number: int) -> Optional[WordEmbedding]:
        if not line.strip():
            return None
        try:
            return WordEmbedding.from_dict(json.loads(line))
        except (ValueError, TypeError, AttributeError) as e:
            self.skipped_lines += 1
            logger.warning(f"Skipping malformed line {line_number} in {self.path}: {e}")
            return None

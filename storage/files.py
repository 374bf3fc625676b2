"""File-backed token source and result sink."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

from models.records import UtilisationResult

logger = logging.getLogger(__name__)


def iter_tokens(stream: TextIO) -> Iterator[str]:
    """Lazily yield whitespace-separated tokens, one line at a time."""
    for line in stream:
        yield from line.split()


@contextmanager
def open_token_source(path: Path, encoding: str = "utf-8") -> Iterator[Iterator[str]]:
    """Yield a token iterator over ``path``; the file is closed on exit."""
    with path.open("r", encoding=encoding) as handle:
        yield iter_tokens(handle)


def format_percentage(result: UtilisationResult) -> str:
    return f"{result.percentage:f}"


class FileResultSink:
    """Writes the utilisation percentage as the sole content of a file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, result: UtilisationResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(f"{format_percentage(result)}\n", encoding="utf-8")
        logger.debug(
            "Wrote utilisation to %s",
            self.path,
            extra={"utilisation": result.percentage},
        )

    def discard(self) -> None:
        """Remove a results file left over from an earlier run."""
        if self.path.exists():
            self.path.unlink()
            logger.debug("Removed stale result %s", self.path)

"""Core extractor protocol and errors."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from doc_index.index.models import IndexedDocument


class ExtractionError(Exception):
    """Raised when an extractor cannot read or parse a file."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot extract {path}: {reason}")
        self.path = path
        self.reason = reason


class Extractor(Protocol):
    """Protocol implemented by content extractors."""

    name: str

    def extract(self, path: str, full_path: Path) -> IndexedDocument:
        """Return a document keyed by ``path`` built from the file at ``full_path``."""


def read_text(path: str, full_path: Path) -> str:
    """Read file text as UTF-8, replacing undecodable bytes."""
    try:
        return full_path.read_text(encoding="utf-8", errors="replace")
    except OSError as error:
        raise ExtractionError(path, error.strerror or str(error)) from error

"""Plain text extractor used as the default."""

from __future__ import annotations

from pathlib import Path

from doc_index.extractors.base import read_text
from doc_index.index.models import IndexedDocument, build_document


class PlainTextExtractor:
    """Indexes the whole file as content and its name as title."""

    name = "plain"

    def extract(self, path: str, full_path: Path) -> IndexedDocument:
        text = read_text(path, full_path)
        return build_document(path=path, content=text, title=full_path.name)

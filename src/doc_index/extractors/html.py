"""HTML extractor backed by BeautifulSoup."""

from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup

from doc_index.extractors.base import ExtractionError
from doc_index.index.models import IndexedDocument, build_document


class HtmlExtractor:
    """Indexes visible body text as content and the ``<title>`` as title."""

    name = "html"

    def __init__(self, parser: str = "html.parser") -> None:
        self._parser = parser

    def extract(self, path: str, full_path: Path) -> IndexedDocument:
        try:
            raw = full_path.read_bytes()
        except OSError as error:
            raise ExtractionError(path, error.strerror or str(error)) from error
        soup = BeautifulSoup(raw, self._parser)

        title = ""
        title_tag = soup.find("title")
        if title_tag is not None:
            title = title_tag.get_text(strip=True)

        for tag in soup(["script", "style"]):
            tag.decompose()
        body = soup.find("body")
        # fragments without <body> still carry text
        container = body if body is not None else soup
        content = container.get_text(separator=" ", strip=True)
        return build_document(path=path, content=content, title=title)

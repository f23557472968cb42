"""Extractor registry with deterministic suffix selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from doc_index.extractors.base import ExtractionError, Extractor
from doc_index.index.discovery import normalize_extension
from doc_index.index.models import IndexedDocument


@dataclass(slots=True)
class ExtractorRegistry:
    """Suffix-keyed extractors with an explicit default extractor.

    When several registered suffixes match a file name, the longest one
    wins, so ``.tar.gz`` beats ``.gz`` regardless of registration order.
    """

    _by_suffix: dict[str, Extractor] = field(default_factory=dict)
    _default: Extractor | None = None

    def register(self, suffix: str, extractor: Extractor) -> None:
        """Associate a suffix with an extractor; re-registering replaces it."""
        normalized = normalize_extension(suffix)
        if not normalized:
            raise ValueError("Extractor suffix must be non-empty.")
        self._by_suffix[normalized] = extractor

    def set_default(self, extractor: Extractor) -> None:
        """Set the extractor used when no suffix matches."""
        self._default = extractor

    def suffixes(self) -> tuple[str, ...]:
        """Return registered suffixes in match-priority order."""
        return tuple(sorted(self._by_suffix, key=lambda suffix: (-len(suffix), suffix)))

    def select(self, path: str) -> Extractor:
        """Select the longest matching suffix's extractor, else the default."""
        file_name = Path(path).name.lower()
        for suffix in self.suffixes():
            if file_name.endswith(suffix):
                return self._by_suffix[suffix]
        if self._default is not None:
            return self._default
        raise LookupError(f"No extractor supports path: {path}")

    def extract(self, path: str, full_path: Path) -> IndexedDocument:
        """Extract a document; read and parse failures become ExtractionError."""
        extractor = self.select(path)
        try:
            return extractor.extract(path, full_path)
        except ExtractionError:
            raise
        except (OSError, ValueError) as error:
            raise ExtractionError(path, str(error)) from error

    def names(self) -> tuple[str, ...]:
        """Return extractor names in match-priority order, default last."""
        ordered = [self._by_suffix[suffix].name for suffix in self.suffixes()]
        if self._default is not None:
            ordered.append(self._default.name)
        return tuple(ordered)

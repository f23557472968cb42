"""Typed models for indexing state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

PATH_FIELD = "path"
CONTENT_FIELD = "content"
TITLE_FIELD = "title"


class FileState(Enum):
    """Classification of a visited file against the ledger."""

    NEW = "NEW"
    UPDATED = "UPDATE"
    UNCHANGED = "UNCHANGED"


class RankingModel(Enum):
    """Scoring model used by the index store."""

    VECTOR_SPACE = "VS"
    OKAPI_BM25 = "OK"

    @property
    def label(self) -> str:
        """Return human-readable model name."""
        if self is RankingModel.VECTOR_SPACE:
            return "Vector Space"
        return "Okapi BM25"

    @classmethod
    def from_token(cls, token: str) -> RankingModel:
        """Parse a CLI token such as ``VS`` or ``ok``."""
        normalized = token.strip().upper()
        for model in cls:
            if model.value == normalized:
                return model
        raise ValueError(f"Unknown ranking model: {token}")


@dataclass(slots=True, frozen=True)
class DocumentField:
    """Single named field of an indexed document."""

    name: str
    value: str
    stored: bool
    searchable: bool


@dataclass(slots=True, frozen=True)
class IndexedDocument:
    """Field set produced by an extractor, keyed by its path field."""

    fields: tuple[DocumentField, ...]

    @property
    def path(self) -> str:
        value = self.get(PATH_FIELD)
        if value is None:
            raise ValueError("Indexed document is missing its path field.")
        return value

    def get(self, name: str) -> str | None:
        """Return the first value for a field name."""
        for item in self.fields:
            if item.name == name:
                return item.value
        return None

    def stored_fields(self) -> dict[str, str]:
        """Return stored field values by name."""
        return {item.name: item.value for item in self.fields if item.stored}

    def searchable_fields(self) -> dict[str, str]:
        """Return searchable field values by name, concatenating repeats."""
        output: dict[str, str] = {}
        for item in self.fields:
            if not item.searchable:
                continue
            if item.name in output:
                output[item.name] = f"{output[item.name]}\n{item.value}"
                continue
            output[item.name] = item.value
        return output


def build_document(
    path: str,
    content: str,
    title: str,
    extra: tuple[DocumentField, ...] = (),
) -> IndexedDocument:
    """Build the standard path/content/title document shape."""
    return IndexedDocument(
        fields=(
            DocumentField(name=PATH_FIELD, value=path, stored=True, searchable=False),
            DocumentField(name=CONTENT_FIELD, value=content, stored=False, searchable=True),
            DocumentField(name=TITLE_FIELD, value=title, stored=True, searchable=True),
            *extra,
        )
    )


@dataclass(slots=True, frozen=True)
class FileFailure:
    """Per-file recoverable failure recorded during a run."""

    path: str
    reason: str


@dataclass(slots=True, frozen=True)
class RunOutcome:
    """Counters and failures for one maintenance run."""

    added: int
    updated: int
    removed: int
    failures: tuple[FileFailure, ...] = field(default_factory=tuple)

    @property
    def indexed_count(self) -> int:
        """Files added or updated in the index."""
        return self.added + self.updated

    @property
    def total_mutations(self) -> int:
        return self.added + self.updated + self.removed

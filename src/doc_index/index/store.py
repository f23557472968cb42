"""File-backed document store with writer and searcher sessions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

from doc_index.index.models import PATH_FIELD, IndexedDocument, RankingModel
from doc_index.index.search import (
    FieldStats,
    ScoredDocument,
    ScoringDocument,
    field_stats,
    rank,
)

INDEX_SCHEMA_VERSION = 1
MANIFEST_FILE_NAME = "manifest.json"
DOCUMENTS_FILE_NAME = "documents.jsonl"
DEFAULT_SEARCH_FIELDS = ("content", "title")


@dataclass(slots=True, frozen=True)
class IndexSchemaUnsupportedError(Exception):
    """Raised when stored index schema does not match supported version."""

    found: int
    expected: int


class IndexSessionClosedError(RuntimeError):
    """Raised when a closed session is used."""


@dataclass(slots=True, frozen=True)
class StoredRecord:
    """Persisted representation of one indexed document."""

    stored: dict[str, str]
    fields: dict[str, FieldStats]

    @property
    def path(self) -> str:
        return self.stored.get(PATH_FIELD, "")

    def to_row(self) -> dict[str, object]:
        return {
            "stored": dict(sorted(self.stored.items())),
            "terms": {
                name: dict(sorted(stats.term_counts.items()))
                for name, stats in sorted(self.fields.items())
            },
            "lengths": {name: stats.length for name, stats in sorted(self.fields.items())},
        }


def record_from_document(doc: IndexedDocument) -> StoredRecord:
    """Analyze searchable fields and keep stored values."""
    fields = {name: field_stats(value) for name, value in doc.searchable_fields().items()}
    stored = doc.stored_fields()
    stored[PATH_FIELD] = doc.path
    return StoredRecord(stored=stored, fields=fields)


class IndexWriterSession:
    """Create-or-append writer; mutations become durable on :meth:`close`."""

    def __init__(
        self,
        location: Path,
        ranking_model: RankingModel,
        records: list[StoredRecord],
        diagnostics: TextIO | None = None,
    ) -> None:
        self._location = location
        self._ranking_model = ranking_model
        self._records = records
        self._diagnostics = diagnostics
        self._open = True

    @classmethod
    def open(
        cls,
        location: Path,
        ranking_model: RankingModel,
        verbose: bool = False,
        diagnostics: TextIO | None = None,
    ) -> IndexWriterSession:
        """Open the store at ``location``, creating it when missing."""
        location.mkdir(parents=True, exist_ok=True)
        records = _load_records(location)
        session = cls(
            location=location,
            ranking_model=ranking_model,
            records=records,
            diagnostics=diagnostics if verbose else None,
        )
        session._trace(
            f"open location={location} model={ranking_model.label} documents={len(records)}"
        )
        return session

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def document_count(self) -> int:
        return len(self._records)

    def add_document(self, doc: IndexedDocument) -> None:
        """Add a document; an existing record with the same path is replaced."""
        self._ensure_open()
        record = record_from_document(doc)
        self._remove_where(PATH_FIELD, record.path)
        self._records.append(record)
        self._trace(f"add path={record.path}")

    def update_document(self, key: str, value: str, doc: IndexedDocument) -> None:
        """Delete documents whose stored ``key`` equals ``value``, then add ``doc``."""
        self._ensure_open()
        removed = self._remove_where(key, value)
        record = record_from_document(doc)
        self._remove_where(PATH_FIELD, record.path)
        self._records.append(record)
        self._trace(f"update {key}={value} replaced={removed}")

    def delete_documents(self, key: str, value: str) -> int:
        """Delete documents whose stored ``key`` equals ``value``."""
        self._ensure_open()
        removed = self._remove_where(key, value)
        self._trace(f"delete {key}={value} removed={removed}")
        return removed

    def close(self) -> None:
        """Commit pending mutations durably and release the session."""
        if not self._open:
            return
        ordered = sorted(self._records, key=lambda record: record.path)
        manifest = {
            "schema_version": INDEX_SCHEMA_VERSION,
            "ranking_model": self._ranking_model.value,
            "document_count": len(ordered),
            "last_commit_timestamp": _utc_now_iso(),
        }
        _atomic_write_jsonl(
            self._location / DOCUMENTS_FILE_NAME, [record.to_row() for record in ordered]
        )
        _atomic_write_json(self._location / MANIFEST_FILE_NAME, manifest)
        self._open = False
        self._trace(f"commit documents={len(ordered)}")

    def abort(self) -> None:
        """Discard pending mutations and release the session."""
        if not self._open:
            return
        self._open = False
        self._trace("abort")

    def __enter__(self) -> IndexWriterSession:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        if exc_type is None:
            self.close()
            return
        self.abort()

    def _remove_where(self, key: str, value: str) -> int:
        kept = [record for record in self._records if record.stored.get(key) != value]
        removed = len(self._records) - len(kept)
        self._records = kept
        return removed

    def _ensure_open(self) -> None:
        if not self._open:
            raise IndexSessionClosedError("Index writer session is closed.")

    def _trace(self, message: str) -> None:
        if self._diagnostics is None:
            return
        print(f"IW: {message}", file=self._diagnostics)


class IndexSearcher:
    """Read-only view over the committed store."""

    def __init__(
        self,
        records: list[StoredRecord],
        ranking_model: RankingModel,
        fields: tuple[str, ...],
    ) -> None:
        self._records = records
        self._ranking_model = ranking_model
        self._fields = fields
        self._documents = [
            ScoringDocument(doc_ref=position, path=record.path, fields=record.fields)
            for position, record in enumerate(records)
        ]
        self._open = True

    @classmethod
    def open(
        cls,
        location: Path,
        ranking_model: RankingModel,
        fields: tuple[str, ...] = DEFAULT_SEARCH_FIELDS,
    ) -> IndexSearcher:
        """Open committed documents for searching."""
        if not fields:
            raise ValueError("At least one search field is required.")
        records = sorted(_load_records(location), key=lambda record: record.path)
        return cls(records=records, ranking_model=ranking_model, fields=fields)

    @property
    def document_count(self) -> int:
        return len(self._records)

    def search(self, query: str, k: int) -> list[ScoredDocument]:
        """Return up to ``k`` ranked hits for the analyzed query terms."""
        self._ensure_open()
        return rank(
            documents=self._documents,
            query=query,
            fields=self._fields,
            model=self._ranking_model,
            top_k=k,
        )

    def fetch(self, doc_ref: int) -> dict[str, str]:
        """Return stored fields for a hit's document reference."""
        self._ensure_open()
        if doc_ref < 0 or doc_ref >= len(self._records):
            raise LookupError(f"Unknown document reference: {doc_ref}")
        return dict(self._records[doc_ref].stored)

    def close(self) -> None:
        self._open = False

    def __enter__(self) -> IndexSearcher:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._open:
            raise IndexSessionClosedError("Index searcher is closed.")


def _load_records(location: Path) -> list[StoredRecord]:
    manifest = _read_manifest(location / MANIFEST_FILE_NAME)
    if manifest is None:
        return []
    schema = manifest.get("schema_version")
    if not isinstance(schema, int):
        raise IndexSchemaUnsupportedError(found=-1, expected=INDEX_SCHEMA_VERSION)
    if schema != INDEX_SCHEMA_VERSION:
        raise IndexSchemaUnsupportedError(found=schema, expected=INDEX_SCHEMA_VERSION)
    documents_path = location / DOCUMENTS_FILE_NAME
    if not documents_path.exists():
        return []

    records: list[StoredRecord] = []
    for obj in _read_jsonl(documents_path):
        stored = obj.get("stored")
        terms = obj.get("terms")
        lengths = obj.get("lengths")
        if not isinstance(stored, dict):
            continue
        if not isinstance(stored.get(PATH_FIELD), str):
            continue
        if not isinstance(terms, dict):
            continue
        if not isinstance(lengths, dict):
            continue
        fields: dict[str, FieldStats] = {}
        for name, counts in terms.items():
            length = lengths.get(name)
            if not isinstance(counts, dict) or not isinstance(length, int):
                continue
            fields[name] = FieldStats(
                term_counts={
                    str(term): count for term, count in counts.items() if isinstance(count, int)
                },
                length=length,
            )
        records.append(
            StoredRecord(
                stored={str(key): str(value) for key, value in stored.items()},
                fields=fields,
            )
        )
    return records


def _read_manifest(path: Path) -> dict[str, object] | None:
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as error:
        raise IndexSchemaUnsupportedError(found=-1, expected=INDEX_SCHEMA_VERSION) from error
    if not isinstance(payload, dict):
        raise IndexSchemaUnsupportedError(found=-1, expected=INDEX_SCHEMA_VERSION)
    return payload


def _read_jsonl(path: Path) -> list[dict[str, object]]:
    output: list[dict[str, object]] = []
    with path.open("r", encoding="utf-8") as handle:
        for raw_line in handle:
            stripped = raw_line.strip()
            if not stripped:
                continue
            try:
                obj = json.loads(stripped)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict):
                output.append(obj)
    return output


def _atomic_write_json(path: Path, payload: dict[str, object]) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, sort_keys=True)
        handle.write("\n")
    tmp.replace(path)


def _atomic_write_jsonl(path: Path, rows: list[dict[str, object]]) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, sort_keys=True))
            handle.write("\n")
    tmp.replace(path)


def _utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")

"""Incremental index maintenance over a document tree."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from doc_index.extractors.base import ExtractionError
from doc_index.index.discovery import discover_documents
from doc_index.index.events import (
    ACTION_NEW,
    ACTION_REMOVED,
    ACTION_UPDATE,
    FailedEvent,
    IndexedEvent,
    ListenerRegistry,
)
from doc_index.index.ledger import ChangeLedger, ContentReader
from doc_index.index.models import PATH_FIELD, FileFailure, FileState, IndexedDocument, RunOutcome

if TYPE_CHECKING:
    from doc_index.extractors.registry import ExtractorRegistry


class RunPhase(Enum):
    """Lifecycle of a maintenance run."""

    IDLE = "idle"
    WALKING = "walking"
    RECONCILING = "reconciling"
    FINALIZED = "finalized"


class IndexGateway(Protocol):
    """Mutation surface of an open index writer session."""

    def add_document(self, doc: IndexedDocument) -> None:
        """Add a new document."""

    def update_document(self, key: str, value: str, doc: IndexedDocument) -> None:
        """Replace documents matching ``key == value`` with ``doc``."""

    def delete_documents(self, key: str, value: str) -> int:
        """Delete documents matching ``key == value``."""


class IndexMaintainer:
    """Drives add/update/delete mutations from ledger classification.

    One :meth:`run` walks the tree, classifies every accepted file through
    the ledger and mirrors new or changed files into the index. Once the walk
    is complete, paths the ledger knows but did not see are deleted from the
    index and forgotten by the ledger. Extraction errors and OSErrors from the
    gateway are recorded per file and rolled back in the ledger. Directories
    that cannot be listed keep every known path below them. Listeners on
    ``on_indexed``, ``on_failed`` and ``on_finished`` are called synchronously.
    """

    def __init__(
        self,
        ledger: ChangeLedger,
        extractors: ExtractorRegistry,
        gateway: IndexGateway,
        reader: ContentReader | None = None,
    ) -> None:
        self._ledger = ledger
        self._extractors = extractors
        self._gateway = gateway
        self._reader = reader
        self._phase = RunPhase.IDLE
        self.on_indexed: ListenerRegistry[IndexedEvent] = ListenerRegistry()
        self.on_failed: ListenerRegistry[FailedEvent] = ListenerRegistry()
        self.on_finished: ListenerRegistry[RunOutcome] = ListenerRegistry()

    @property
    def phase(self) -> RunPhase:
        return self._phase

    def run(self, document_dir: Path, extensions: Iterable[str]) -> RunOutcome:
        """Bring the index in line with ``document_dir`` and report counters."""
        if not document_dir.is_dir():
            raise NotADirectoryError(f"Document directory not found: {document_dir}")
        accepted = tuple(extensions)

        self._ledger.begin_run()
        self._phase = RunPhase.WALKING
        added = 0
        updated = 0
        failures: list[FileFailure] = []
        discovered = discover_documents(document_dir, accepted)
        for prefix in discovered.unlisted_dirs:
            # contents are unknown, so nothing below the directory may be deleted
            self._mark_seen_under(prefix)
        for candidate in discovered.files:
            if not candidate.readable:
                # present on disk, so it must not be reported as deleted
                self._ledger.mark_seen(candidate.path)
                continue
            state = self._ledger.classify(candidate.path, self._reader)
            if state is FileState.UNCHANGED:
                continue
            try:
                doc = self._extractors.extract(candidate.path, candidate.full_path)
            except ExtractionError as error:
                failures.append(self._fail(candidate.path, error.reason))
                continue
            try:
                if state is FileState.NEW:
                    self._gateway.add_document(doc)
                else:
                    self._gateway.update_document(PATH_FIELD, candidate.path, doc)
            except OSError as error:
                failures.append(self._fail(candidate.path, error.strerror or str(error)))
                continue
            if state is FileState.NEW:
                added += 1
                self.on_indexed.notify(IndexedEvent(path=candidate.path, action=ACTION_NEW))
                continue
            updated += 1
            self.on_indexed.notify(IndexedEvent(path=candidate.path, action=ACTION_UPDATE))

        self._phase = RunPhase.RECONCILING
        removed = 0
        for path in sorted(self._ledger.compute_deletions()):
            self._gateway.delete_documents(PATH_FIELD, path)
            self._ledger.forget(path)
            removed += 1
            self.on_indexed.notify(IndexedEvent(path=path, action=ACTION_REMOVED))

        self._phase = RunPhase.FINALIZED
        outcome = RunOutcome(
            added=added,
            updated=updated,
            removed=removed,
            failures=tuple(failures),
        )
        self.on_finished.notify(outcome)
        return outcome

    def _fail(self, path: str, reason: str) -> FileFailure:
        self._ledger.rollback(path)
        failure = FileFailure(path=path, reason=reason)
        self.on_failed.notify(FailedEvent(path=failure.path, reason=failure.reason))
        return failure

    def _mark_seen_under(self, prefix: str) -> None:
        directory = prefix.rstrip("/") + "/"
        for path in self._ledger.paths():
            if path.startswith(directory):
                self._ledger.mark_seen(path)

"""Persistent path-to-fingerprint ledger for incremental indexing."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import BinaryIO

from doc_index.index.models import FileState

LEDGER_FILE_NAME = "checked.dat"
LEDGER_FORMAT = "doc-index-ledger"
LEDGER_SCHEMA_VERSION = 1
_READ_CHUNK_BYTES = 1024 * 128

ContentReader = Callable[[str], BinaryIO]


class FingerprintError(OSError):
    """Raised when a file cannot be read in full for fingerprinting."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot fingerprint {path}: {reason}")
        self.path = path
        self.reason = reason


class LedgerPersistError(OSError):
    """Raised when the ledger cannot be written back to storage."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot write ledger {path}: {reason}")
        self.path = path
        self.reason = reason


def open_binary(path: str) -> BinaryIO:
    """Default content reader."""
    return Path(path).open("rb")


def fingerprint_stream(handle: BinaryIO) -> str:
    """Compute SHA-256 of a binary stream in deterministic chunked reads."""
    digest = hashlib.sha256()
    while True:
        chunk = handle.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        digest.update(chunk)
    return digest.hexdigest()


class ChangeLedger:
    """Known files with their last fingerprints, plus the per-run seen set.

    The mapping survives across runs through :meth:`save` and :meth:`load`.
    The seen set only lives for the current run and is cleared by
    :meth:`begin_run`; paths in the mapping that were not seen are the
    deletions reported by :meth:`compute_deletions`.
    """

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})
        self._seen: set[str] = set()
        # fingerprint before this run's classify, None when the path was new
        self._prior: dict[str, str | None] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    @property
    def seen(self) -> frozenset[str]:
        """Paths observed during the current run."""
        return frozenset(self._seen)

    def paths(self) -> tuple[str, ...]:
        """Return known paths in sorted order."""
        return tuple(sorted(self._entries))

    def fingerprint(self, path: str) -> str | None:
        """Return the stored fingerprint for a path, if known."""
        return self._entries.get(path)

    def entries(self) -> dict[str, str]:
        """Return a copy of the path to fingerprint mapping."""
        return dict(self._entries)

    def begin_run(self) -> None:
        """Reset run-scoped state before a new walk."""
        self._seen.clear()
        self._prior.clear()

    def mark_seen(self, path: str) -> None:
        """Record a path as present without fingerprinting it."""
        self._seen.add(path)

    def classify(self, path: str, reader: ContentReader | None = None) -> FileState:
        """Fingerprint a file and compare it against the stored entry."""
        open_content = reader or open_binary
        try:
            with open_content(path) as handle:
                current = fingerprint_stream(handle)
        except OSError as error:
            raise FingerprintError(path, error.strerror or str(error)) from error

        self._seen.add(path)
        previous = self._entries.get(path)
        if previous is None:
            self._prior.setdefault(path, None)
            self._entries[path] = current
            return FileState.NEW
        if previous == current:
            return FileState.UNCHANGED
        self._prior.setdefault(path, previous)
        self._entries[path] = current
        return FileState.UPDATED

    def rollback(self, path: str) -> None:
        """Undo this run's fingerprint change for a path; it stays seen."""
        if path not in self._prior:
            return
        previous = self._prior.pop(path)
        if previous is None:
            self._entries.pop(path, None)
            return
        self._entries[path] = previous

    def compute_deletions(self) -> frozenset[str]:
        """Return known paths that were not seen during this run."""
        return frozenset(self._entries.keys() - self._seen)

    def forget(self, path: str) -> None:
        """Remove a path from the persisted mapping."""
        self._entries.pop(path, None)
        self._prior.pop(path, None)

    @classmethod
    def load(cls, path: Path) -> ChangeLedger:
        """Load a ledger, falling back to empty on missing or corrupt storage."""
        if not path.is_file():
            return cls()
        try:
            with path.open("r", encoding="utf-8") as handle:
                lines = handle.read().splitlines()
        except (OSError, UnicodeDecodeError):
            return cls()
        if not lines:
            return cls()
        try:
            header = json.loads(lines[0])
        except json.JSONDecodeError:
            return cls()
        if not isinstance(header, dict):
            return cls()
        if header.get("format") != LEDGER_FORMAT:
            return cls()
        if header.get("schema_version") != LEDGER_SCHEMA_VERSION:
            return cls()

        entries: dict[str, str] = {}
        for raw_line in lines[1:]:
            stripped = raw_line.strip()
            if not stripped:
                continue
            try:
                obj = json.loads(stripped)
            except json.JSONDecodeError:
                continue
            if not isinstance(obj, dict):
                continue
            entry_path = obj.get("path")
            fingerprint = obj.get("fingerprint")
            if not isinstance(entry_path, str):
                continue
            if not isinstance(fingerprint, str):
                continue
            entries[entry_path] = fingerprint
        return cls(entries)

    def save(self, path: Path) -> None:
        """Write the mapping atomically; the seen set is not persisted."""
        tmp = path.with_suffix(path.suffix + ".tmp")
        header = {"format": LEDGER_FORMAT, "schema_version": LEDGER_SCHEMA_VERSION}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as handle:
                handle.write(json.dumps(header, sort_keys=True))
                handle.write("\n")
                for entry_path in sorted(self._entries):
                    row = {"path": entry_path, "fingerprint": self._entries[entry_path]}
                    handle.write(json.dumps(row, sort_keys=True))
                    handle.write("\n")
            tmp.replace(path)
        except OSError as error:
            raise LedgerPersistError(path, error.strerror or str(error)) from error


def ledger_path(index_dir: Path) -> Path:
    """Return the well-known ledger location under an index directory."""
    return index_dir / LEDGER_FILE_NAME

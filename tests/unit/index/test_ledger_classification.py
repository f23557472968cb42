from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO

import pytest

from doc_index.index import ChangeLedger, FileState, FingerprintError


def test_unseen_file_is_new_once_then_unchanged(tmp_path: Path) -> None:
    doc = tmp_path / "a.txt"
    doc.write_text("alpha\n", encoding="utf-8")
    ledger = ChangeLedger()

    assert ledger.classify(str(doc)) is FileState.NEW
    assert ledger.classify(str(doc)) is FileState.UNCHANGED
    assert str(doc) in ledger
    assert len(ledger) == 1


def test_changed_content_is_updated_and_fingerprint_overwritten(tmp_path: Path) -> None:
    doc = tmp_path / "a.txt"
    doc.write_text("alpha v1\n", encoding="utf-8")
    ledger = ChangeLedger()
    ledger.classify(str(doc))
    before = ledger.fingerprint(str(doc))

    ledger.begin_run()
    doc.write_text("alpha v2\n", encoding="utf-8")

    assert ledger.classify(str(doc)) is FileState.UPDATED
    after = ledger.fingerprint(str(doc))
    assert after is not None
    assert after != before
    ledger.begin_run()
    assert ledger.classify(str(doc)) is FileState.UNCHANGED


def test_classifying_unchanged_file_twice_keeps_single_seen_entry(tmp_path: Path) -> None:
    doc = tmp_path / "a.txt"
    doc.write_text("alpha\n", encoding="utf-8")
    ledger = ChangeLedger()
    ledger.classify(str(doc))
    ledger.begin_run()

    assert ledger.classify(str(doc)) is FileState.UNCHANGED
    assert ledger.classify(str(doc)) is FileState.UNCHANGED
    assert ledger.seen == frozenset({str(doc)})


def test_known_but_unseen_path_is_reported_as_deletion_once(tmp_path: Path) -> None:
    keep = tmp_path / "keep.txt"
    keep.write_text("keep\n", encoding="utf-8")
    ledger = ChangeLedger({str(keep): "stale", "/gone/drop.txt": "abc"})
    ledger.begin_run()
    ledger.classify(str(keep))

    deletions = ledger.compute_deletions()

    assert deletions == frozenset({"/gone/drop.txt"})
    # computing deletions does not mutate the mapping
    assert "/gone/drop.txt" in ledger
    ledger.forget("/gone/drop.txt")
    assert ledger.compute_deletions() == frozenset()
    assert ledger.paths() == (str(keep),)


def test_begin_run_clears_seen_set(tmp_path: Path) -> None:
    doc = tmp_path / "a.txt"
    doc.write_text("alpha\n", encoding="utf-8")
    ledger = ChangeLedger()
    ledger.classify(str(doc))

    ledger.begin_run()

    assert ledger.seen == frozenset()
    assert ledger.compute_deletions() == frozenset({str(doc)})


def test_read_failure_raises_without_recording_fingerprint() -> None:
    def failing_reader(path: str) -> BinaryIO:
        raise PermissionError(13, "Permission denied", path)

    ledger = ChangeLedger()

    with pytest.raises(FingerprintError) as excinfo:
        ledger.classify("/docs/locked.txt", failing_reader)

    assert excinfo.value.path == "/docs/locked.txt"
    assert "/docs/locked.txt" not in ledger
    assert ledger.seen == frozenset()


def test_custom_reader_supplies_content() -> None:
    contents = {"/virtual/a.txt": b"one"}

    def reader(path: str) -> BinaryIO:
        return io.BytesIO(contents[path])

    ledger = ChangeLedger()
    assert ledger.classify("/virtual/a.txt", reader) is FileState.NEW
    ledger.begin_run()
    contents["/virtual/a.txt"] = b"two"
    assert ledger.classify("/virtual/a.txt", reader) is FileState.UPDATED


def test_rollback_restores_previous_state_but_keeps_path_seen(tmp_path: Path) -> None:
    fresh = tmp_path / "fresh.txt"
    known = tmp_path / "known.txt"
    fresh.write_text("fresh\n", encoding="utf-8")
    known.write_text("known v1\n", encoding="utf-8")
    ledger = ChangeLedger()
    ledger.classify(str(known))
    original = ledger.fingerprint(str(known))

    ledger.begin_run()
    known.write_text("known v2\n", encoding="utf-8")
    assert ledger.classify(str(fresh)) is FileState.NEW
    assert ledger.classify(str(known)) is FileState.UPDATED
    ledger.rollback(str(fresh))
    ledger.rollback(str(known))

    assert str(fresh) not in ledger
    assert ledger.fingerprint(str(known)) == original
    assert ledger.seen == frozenset({str(fresh), str(known)})
    assert ledger.compute_deletions() == frozenset()


def test_mark_seen_prevents_deletion_without_fingerprinting() -> None:
    ledger = ChangeLedger({"/docs/locked.txt": "abc"})
    ledger.begin_run()

    ledger.mark_seen("/docs/locked.txt")

    assert ledger.compute_deletions() == frozenset()
    assert ledger.fingerprint("/docs/locked.txt") == "abc"

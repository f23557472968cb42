from __future__ import annotations

import os
from pathlib import Path

import pytest

from doc_index.index import (
    accepts,
    discover_documents,
    document_key,
    normalize_extension,
    normalize_extensions,
)


def test_accepts_matches_lowercased_name_suffix() -> None:
    assert accepts("README.TXT", (".txt",))
    assert accepts("page.Html", (".HTML",))
    assert not accepts("notes.md", (".txt",))
    assert not accepts("notes.txt", ())


def test_normalize_extensions_lowercases_prefixes_and_dedupes() -> None:
    assert normalize_extension("HTML") == ".html"
    assert normalize_extension(" .Htm ") == ".htm"
    assert normalize_extension("") == ""
    assert normalize_extensions(["txt", ".TXT", "", "html"]) == (".html", ".txt")


def test_empty_extension_set_accepts_nothing(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a\n", encoding="utf-8")

    result = discover_documents(tmp_path, ())

    assert result.files == ()
    assert result.unlisted_dirs == ()


def test_discovery_is_sorted_recursive_and_filtered(tmp_path: Path) -> None:
    (tmp_path / "b").mkdir()
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "nested").mkdir()
    (tmp_path / "z.txt").write_text("z\n", encoding="utf-8")
    (tmp_path / "c.TXT").write_text("c\n", encoding="utf-8")
    (tmp_path / "skip.md").write_text("skip\n", encoding="utf-8")
    (tmp_path / "a" / "one.txt").write_text("1\n", encoding="utf-8")
    (tmp_path / "a" / "nested" / "deep.txt").write_text("deep\n", encoding="utf-8")
    (tmp_path / "b" / "two.txt").write_text("2\n", encoding="utf-8")

    found = discover_documents(tmp_path, (".txt",)).files

    assert [Path(item.path).relative_to(tmp_path).as_posix() for item in found] == [
        "c.TXT",
        "z.txt",
        "a/one.txt",
        "a/nested/deep.txt",
        "b/two.txt",
    ]
    assert all(item.readable for item in found)
    assert found[0].path == document_key(tmp_path / "c.TXT")


def test_discovery_order_is_stable_across_calls(tmp_path: Path) -> None:
    for name in ("m.txt", "b.txt", "x.txt"):
        (tmp_path / name).write_text(name, encoding="utf-8")

    first = [item.path for item in discover_documents(tmp_path, (".txt",)).files]
    second = [item.path for item in discover_documents(tmp_path, (".txt",)).files]

    assert first == second


def test_document_key_is_absolute_posix(tmp_path: Path) -> None:
    key = document_key(tmp_path / "docs" / ".." / "docs" / "a.txt")

    assert Path(key).is_absolute()
    assert key.endswith("docs/a.txt")
    assert ".." not in key


def _deny_listing(monkeypatch: pytest.MonkeyPatch, denied: Path) -> None:
    real_scandir = os.scandir

    def scandir(path: os.PathLike[str] | str) -> object:
        if Path(path) == denied:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr("doc_index.index.discovery.os.scandir", scandir)


def test_unlistable_subdirectory_is_reported(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (tmp_path / "locked").mkdir()
    (tmp_path / "locked" / "hidden.txt").write_text("h\n", encoding="utf-8")
    (tmp_path / "open.txt").write_text("o\n", encoding="utf-8")
    _deny_listing(monkeypatch, tmp_path / "locked")

    result = discover_documents(tmp_path, (".txt",))

    assert [item.path for item in result.files] == [document_key(tmp_path / "open.txt")]
    assert result.unlisted_dirs == (document_key(tmp_path / "locked"),)


def test_unlistable_root_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "a.txt").write_text("a\n", encoding="utf-8")
    _deny_listing(monkeypatch, tmp_path)

    with pytest.raises(PermissionError):
        discover_documents(tmp_path, (".txt",))

"""Deterministic document discovery with extension filtering."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True, frozen=True)
class CandidateFile:
    """Accepted file discovered during traversal."""

    path: str
    full_path: Path
    readable: bool


@dataclass(slots=True, frozen=True)
class DiscoveryResult:
    """Accepted files plus keys of subdirectories that could not be listed."""

    files: tuple[CandidateFile, ...]
    unlisted_dirs: tuple[str, ...]


def normalize_extension(value: str) -> str:
    """Lowercase an extension and ensure a leading dot."""
    normalized = value.strip().lower()
    if not normalized:
        return ""
    if not normalized.startswith("."):
        normalized = f".{normalized}"
    return normalized


def normalize_extensions(values: Iterable[str]) -> tuple[str, ...]:
    """Normalize, dedupe and sort extension strings."""
    output = {normalize_extension(value) for value in values}
    output.discard("")
    return tuple(sorted(output))


def accepts(file_name: str, extensions: Iterable[str]) -> bool:
    """Return True when the lowercased name ends with an accepted extension."""
    lowered = file_name.lower()
    return any(lowered.endswith(extension.lower()) for extension in extensions if extension)


def is_readable(path: Path) -> bool:
    """Return True when the current process may read the file."""
    return os.access(path, os.R_OK)


def document_key(path: Path) -> str:
    """Build the stable index key for a document path."""
    return Path(os.path.abspath(path)).as_posix()


def discover_documents(root: Path, extensions: Iterable[str]) -> DiscoveryResult:
    """Walk tree in sorted depth-first order and return accepted files.

    Subdirectories that cannot be listed are reported in ``unlisted_dirs``
    so callers can keep their known documents. Failing to list ``root``
    itself raises the underlying OSError.
    """
    accepted = tuple(extensions)
    if not accepted:
        return DiscoveryResult(files=(), unlisted_dirs=())
    candidates: list[CandidateFile] = []
    unlisted: list[str] = []
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            if current == root:
                raise
            unlisted.append(document_key(current))
            continue
        # directories are pushed in reverse so they pop in name order
        subdirs: list[Path] = []
        for entry in ordered_entries:
            full_path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(full_path)
                continue
            if not entry.is_file():
                continue
            if not accepts(entry.name, accepted):
                continue
            candidates.append(
                CandidateFile(
                    path=document_key(full_path),
                    full_path=full_path,
                    readable=is_readable(full_path),
                )
            )
        stack.extend(reversed(subdirs))
    return DiscoveryResult(files=tuple(candidates), unlisted_dirs=tuple(unlisted))

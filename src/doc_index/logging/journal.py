"""Structured JSONL journal of maintenance runs."""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from doc_index.index.events import FailedEvent, IndexedEvent
from doc_index.index.maintainer import IndexMaintainer
from doc_index.index.models import RunOutcome

JOURNAL_FILE_NAME = "journal.jsonl"


@dataclass(slots=True, frozen=True)
class JournalEvent:
    """Single journal record."""

    timestamp: str
    run_id: str
    kind: str
    path: str | None
    action: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


class JsonlRunJournal:
    """Append-only JSONL journal and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: JournalEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Read recent events, optionally filtered by timestamp lower bound."""
        if limit < 1:
            return []
        entries: list[dict[str, object]] = []
        if not self._path.exists():
            return entries
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    record = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if since is not None:
                    ts = record.get("timestamp")
                    if not isinstance(ts, str) or ts < since:
                        continue
                entries.append(record)
        if len(entries) <= limit:
            return entries
        return entries[-limit:]

    def record(
        self,
        run_id: str,
        kind: str,
        metadata: dict[str, object],
        path: str | None = None,
        action: str | None = None,
    ) -> None:
        """Append one timestamped event for ``run_id``."""
        self.append(
            JournalEvent(
                timestamp=utc_timestamp(),
                run_id=run_id,
                kind=kind,
                path=path,
                action=action,
                metadata=metadata,
            )
        )

    def attach(self, maintainer: IndexMaintainer, run_id: str | None = None) -> str:
        """Subscribe journal writers to a maintainer's events; return the run id.

        Events are appended as they happen, before the index commits. A run
        whose writer is later aborted should be closed with an ``aborted``
        record so readers can discard its mutations.
        """
        active_run = run_id or new_run_id()

        def on_indexed(event: IndexedEvent) -> None:
            self.record(active_run, "indexed", {}, path=event.path, action=event.action)

        def on_failed(event: FailedEvent) -> None:
            self.record(active_run, "failed", {"reason": event.reason}, path=event.path)

        def on_finished(outcome: RunOutcome) -> None:
            self.record(
                active_run,
                "finished",
                {
                    "added": outcome.added,
                    "updated": outcome.updated,
                    "removed": outcome.removed,
                    "failed": len(outcome.failures),
                },
            )

        maintainer.on_indexed.subscribe(on_indexed)
        maintainer.on_failed.subscribe(on_failed)
        maintainer.on_finished.subscribe(on_finished)
        return active_run

"""Synchronous listener registry and indexing event payloads."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

EventT = TypeVar("EventT")

ACTION_NEW = "NEW"
ACTION_UPDATE = "UPDATE"
ACTION_REMOVED = "REMOVED"


@dataclass(slots=True, frozen=True)
class IndexedEvent:
    """A single index mutation applied for a document path."""

    path: str
    action: str

    @property
    def message(self) -> str:
        return f"{self.path} {self.action}"


@dataclass(slots=True, frozen=True)
class FailedEvent:
    """A document skipped after a recoverable per-file failure."""

    path: str
    reason: str


@dataclass(slots=True)
class ListenerRegistry(Generic[EventT]):
    """Ordered observers notified synchronously in registration order."""

    _listeners: list[Callable[[EventT], None]] = field(default_factory=list)

    def subscribe(self, listener: Callable[[EventT], None]) -> None:
        """Register a listener; duplicates are notified once per registration."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[EventT], None]) -> None:
        """Remove the earliest registration of a listener, if present."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return

    def notify(self, event: EventT) -> None:
        """Invoke listeners in order; listener exceptions propagate.

        Dispatch iterates a snapshot, so subscription changes made by a
        listener apply from the next event on.
        """
        for listener in tuple(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)

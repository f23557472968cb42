"""Structured logging utilities."""

from .journal import JOURNAL_FILE_NAME, JournalEvent, JsonlRunJournal, new_run_id, utc_timestamp

__all__ = ["JOURNAL_FILE_NAME", "JournalEvent", "JsonlRunJournal", "new_run_id", "utc_timestamp"]

"""Command line entrypoint: refresh the index, then run one query."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn, TextIO

from doc_index.config import RunConfig, SettingsError, load_effective_config
from doc_index.extractors import HTML_SUFFIXES, build_extractor_registry
from doc_index.index import (
    ChangeLedger,
    FingerprintError,
    IndexMaintainer,
    IndexSchemaUnsupportedError,
    IndexSearcher,
    IndexWriterSession,
    LedgerPersistError,
    RankingModel,
    RunOutcome,
    ledger_path,
)
from doc_index.logging import JOURNAL_FILE_NAME, JsonlRunJournal

EXIT_OK = 0
EXIT_FAILURE = -1
USAGE = "doc-index <document_dir> <index_dir> <VS|OK> <query> [settings.toml] [-v]"


class UsageError(Exception):
    """Raised instead of exiting when command line arguments are invalid."""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the index-and-search command."""
    parser = _ArgumentParser(
        prog="doc-index",
        usage=USAGE,
        description="Incrementally index a document folder and search it.",
    )
    parser.add_argument("document_dir", help="Folder with the documents to index.")
    parser.add_argument("index_dir", help="Folder holding the index; created when missing.")
    parser.add_argument(
        "ranking_model",
        type=RankingModel.from_token,
        help="VS for vector space or OK for Okapi BM25.",
    )
    parser.add_argument("query", help="Query to search for.")
    parser.add_argument("settings", nargs="?", default=None, help="Optional settings TOML file.")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print index writer diagnostics."
    )
    return parser


def run_indexing(config: RunConfig, ledger: ChangeLedger, out_stream: TextIO) -> RunOutcome:
    """Bring the index up to date and commit it."""
    with IndexWriterSession.open(
        config.index_dir,
        config.ranking_model,
        verbose=config.verbose,
        diagnostics=out_stream,
    ) as writer:
        maintainer = IndexMaintainer(
            ledger=ledger,
            extractors=build_extractor_registry(),
            gateway=writer,
        )
        maintainer.on_indexed.subscribe(
            lambda event: print(f"Indexed: {event.message}", file=out_stream)
        )
        maintainer.on_failed.subscribe(
            lambda event: print(f"Skipped: {event.path} ({event.reason})", file=out_stream)
        )
        maintainer.on_finished.subscribe(
            lambda outcome: print(f"Indexed {outcome.indexed_count} files", file=out_stream)
        )
        journal = JsonlRunJournal(config.index_dir / JOURNAL_FILE_NAME)
        run_id = journal.attach(maintainer)
        journal.record(run_id, "started", config.to_public_dict())
        try:
            return maintainer.run(config.document_dir, config.settings.file_types)
        except Exception as error:
            # the writer discards this run's mutations on the way out
            journal.record(run_id, "aborted", {"error": str(error)})
            raise


def run_search(config: RunConfig, out_stream: TextIO) -> None:
    """Run the configured query and print ranked results."""
    with IndexSearcher.open(config.index_dir, config.ranking_model) as searcher:
        hits = searcher.search(config.query, config.settings.number_results)
        print("\n=== RESULTS ===\n", file=out_stream)
        if not hits:
            print("No relevant found", file=out_stream)
            return
        for rank, hit in enumerate(hits, start=1):
            stored = searcher.fetch(hit.doc_ref)
            path = Path(stored.get("path", ""))
            print(f"Rank {rank}", file=out_stream)
            print(f"Score: {hit.score}", file=out_stream)
            print(f"File: {path.name}", file=out_stream)
            if path.name.lower().endswith(HTML_SUFFIXES):
                print(f"Title: {stored.get('title', '')}", file=out_stream)
            print(f"Path: {path}\n", file=out_stream)


def print_information(config: RunConfig, out_stream: TextIO) -> None:
    print("== Information ==", file=out_stream)
    print(f"Document-directory: {config.document_dir}", file=out_stream)
    print(f"Index-directory: {config.index_dir}", file=out_stream)
    print(f"Ranking Model: {config.ranking_model.label}", file=out_stream)
    print(f"Query: {config.query}", file=out_stream)
    print(f"Number of Results Shown: {config.settings.number_results}", file=out_stream)
    print(f"Indexed File types: {', '.join(config.settings.file_types)}\n", file=out_stream)


def main(argv: list[str] | None = None, out_stream: TextIO | None = None) -> int:
    """Entrypoint for the doc-index command."""
    out = out_stream or sys.stdout
    parser = build_arg_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as error:
        print(f"Wrong usage: {error}", file=out)
        print(f"usage: {USAGE}", file=out)
        print("or doc-index -h for more information", file=out)
        return EXIT_FAILURE

    document_dir = Path(args.document_dir)
    if not document_dir.is_dir():
        print(f"Error with: {document_dir}", file=out)
        return EXIT_FAILURE
    index_dir = Path(args.index_dir)
    try:
        index_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        print(f"Cannot create index directory {index_dir}: {error}", file=out)
        return EXIT_FAILURE

    try:
        config = load_effective_config(
            document_dir=document_dir,
            index_dir=index_dir,
            ranking_model=args.ranking_model,
            query=args.query,
            settings_path=Path(args.settings) if args.settings is not None else None,
            verbose=args.verbose,
        )
    except SettingsError as error:
        print(f"Error loading additional settings: {error}", file=out)
        return EXIT_FAILURE

    print_information(config, out)

    ledger_file = ledger_path(config.index_dir)
    ledger = ChangeLedger.load(ledger_file)
    try:
        outcome = run_indexing(config, ledger, out)
    except FingerprintError as error:
        print(f"Cannot index: {error}", file=out)
        return EXIT_FAILURE
    except IndexSchemaUnsupportedError as error:
        print(
            f"Cannot index: index schema {error.found} is not supported "
            f"(expected {error.expected}).",
            file=out,
        )
        return EXIT_FAILURE
    except OSError as error:
        print(f"Cannot index: {error}", file=out)
        return EXIT_FAILURE

    try:
        ledger.save(ledger_file)
    except LedgerPersistError as error:
        print(str(error), file=out)
        return EXIT_FAILURE

    if outcome.failures:
        print(f"{len(outcome.failures)} file(s) could not be indexed.", file=out)

    try:
        run_search(config, out)
    except (OSError, IndexSchemaUnsupportedError) as error:
        print(f"Cannot read some files: {error!r}", file=out)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())

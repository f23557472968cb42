"""Incremental indexing and search package."""

from .models import (
    CONTENT_FIELD,
    PATH_FIELD,
    TITLE_FIELD,
    DocumentField,
    FileFailure,
    FileState,
    IndexedDocument,
    RankingModel,
    RunOutcome,
    build_document,
)
from .discovery import (
    CandidateFile,
    DiscoveryResult,
    accepts,
    discover_documents,
    document_key,
    normalize_extension,
    normalize_extensions,
)
from .events import FailedEvent, IndexedEvent, ListenerRegistry
from .ledger import (
    LEDGER_FILE_NAME,
    ChangeLedger,
    FingerprintError,
    LedgerPersistError,
    ledger_path,
)
from .search import ScoredDocument, analyze, stem, tokenize
from .store import (
    INDEX_SCHEMA_VERSION,
    IndexSchemaUnsupportedError,
    IndexSearcher,
    IndexSessionClosedError,
    IndexWriterSession,
)
from .maintainer import IndexGateway, IndexMaintainer, RunPhase

__all__ = [
    "CONTENT_FIELD",
    "CandidateFile",
    "DiscoveryResult",
    "ChangeLedger",
    "DocumentField",
    "FailedEvent",
    "FileFailure",
    "FileState",
    "FingerprintError",
    "INDEX_SCHEMA_VERSION",
    "IndexGateway",
    "IndexMaintainer",
    "IndexSchemaUnsupportedError",
    "IndexSearcher",
    "IndexSessionClosedError",
    "IndexWriterSession",
    "IndexedDocument",
    "IndexedEvent",
    "LEDGER_FILE_NAME",
    "LedgerPersistError",
    "ListenerRegistry",
    "PATH_FIELD",
    "RankingModel",
    "RunOutcome",
    "RunPhase",
    "ScoredDocument",
    "TITLE_FIELD",
    "accepts",
    "analyze",
    "build_document",
    "discover_documents",
    "document_key",
    "ledger_path",
    "normalize_extension",
    "normalize_extensions",
    "stem",
    "tokenize",
]

from .exceptions import (
    FirebatchError,
    InvalidPathError,
    InvalidBatchSize,
    ManifestNotFoundError,
    ReadError,
    WriteError,
    StructureError,
    StoreError,
    BatchCommitError,
    SentinelError,
    InvalidOperand,
    InvalidElements,
    InvalidSentinelKind,
    RecursionLimitExceeded,
)
from .paths import is_document_path, is_collection_path, validate_path
from .manifest import DocumentRecord, read_manifest, write_manifest
from .sentinels import resolve, parse_sentinel
from .store import DocumentStore, FirestoreStore, StoreConfig, StoredDocument
from .bulk import (
    BatchLimits, FIRESTORE_LIMITS,
    ExportOptions, ExportResult,
    ImportOptions, ImportResult, DocumentFailure,
    DeleteResult,
    export_collection, import_data, delete_collection, delete_document,
)

__all__ = [
    "FirebatchError", "InvalidPathError", "InvalidBatchSize",
    "ManifestNotFoundError", "ReadError", "WriteError", "StructureError",
    "StoreError", "BatchCommitError",
    "SentinelError", "InvalidOperand", "InvalidElements",
    "InvalidSentinelKind", "RecursionLimitExceeded",
    "is_document_path", "is_collection_path", "validate_path",
    "DocumentRecord", "read_manifest", "write_manifest",
    "resolve", "parse_sentinel",
    "DocumentStore", "FirestoreStore", "StoreConfig", "StoredDocument",
    "BatchLimits", "FIRESTORE_LIMITS",
    "ExportOptions", "ExportResult",
    "ImportOptions", "ImportResult", "DocumentFailure", "DeleteResult",
    "export_collection", "import_data", "delete_collection", "delete_document",
]

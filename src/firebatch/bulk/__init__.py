"""Bulk export, import and recursive delete against a :class:`~firebatch.store.DocumentStore`.

Imports are split into atomic batches no larger than the store allows
(500 writes for Firestore). Batches commit one at a time, in document
order; a failed commit stops the import and reports how many documents
were already written.
"""

from ._types import (
    FIRESTORE_LIMITS,
    BatchLimits,
    DeleteResult,
    DocumentFailure,
    ExportOptions,
    ExportResult,
    ImportOptions,
    ImportResult,
)
from ._export import export_collection
from ._import import import_data
from ._delete import delete_collection, delete_document

__all__ = [
    "BatchLimits", "FIRESTORE_LIMITS",
    "ExportOptions", "ExportResult",
    "ImportOptions", "ImportResult", "DocumentFailure",
    "DeleteResult",
    "export_collection", "import_data",
    "delete_collection", "delete_document",
]

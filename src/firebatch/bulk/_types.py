"""Options and results for export, import and delete operations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..exceptions import InvalidBatchSize

if TYPE_CHECKING:
    from ..manifest import DocumentRecord

ProgressCallback = Callable[[int, int], None]
"""``on_progress(current, total)``; called inline, so keep it fast."""

ConfirmCallback = Callable[[], bool]


@dataclass(frozen=True)
class BatchLimits:
    """Batch-size bounds of the target store.

    Firestore accepts at most 500 writes per atomic batch. The maximum
    doubles as the page size of recursive deletes.
    """
    min_batch_size: int = 1
    max_batch_size: int = 500

    def check(self, size: int) -> int:
        """Return *size*, or raise :class:`InvalidBatchSize` if out of range."""
        if isinstance(size, bool) or not isinstance(size, int):
            raise InvalidBatchSize(size, self)
        if not self.min_batch_size <= size <= self.max_batch_size:
            raise InvalidBatchSize(size, self)
        return size


FIRESTORE_LIMITS = BatchLimits()


@dataclass
class ExportOptions:
    """Options for :func:`~firebatch.bulk.export_collection`.

    Attributes:
        collection_path: Collection to export (odd number of segments).
        output_path: Manifest file to write. Empty string skips the write.
        include_subcollections: Export every subcollection, recursively.
        on_progress: Called once per top-level document.
    """
    collection_path: str
    output_path: str = ""
    include_subcollections: bool = False
    on_progress: ProgressCallback | None = None


@dataclass
class ExportResult:
    exported_count: int
    output_path: str
    documents: list[DocumentRecord] = field(default_factory=list, repr=False)


@dataclass
class ImportOptions:
    """Options for :func:`~firebatch.bulk.import_data`.

    Attributes:
        input_path: Manifest file to read.
        batch_size: Documents per atomic batch.
        on_progress: Called after each committed chunk with
            ``(documents processed, total)``.
        resolve_sentinels: Replace ``$fieldValue`` markers in each
            document's data before staging it.
        include_subcollections: Also import nested ``subcollections``
            records, each right after its parent.
        limits: Allowed range for *batch_size*.
    """
    input_path: str
    batch_size: int = FIRESTORE_LIMITS.max_batch_size
    on_progress: ProgressCallback | None = None
    resolve_sentinels: bool = False
    include_subcollections: bool = False
    limits: BatchLimits = FIRESTORE_LIMITS


@dataclass
class DocumentFailure:
    """A document left out of its batch because it could not be staged.

    Attributes:
        index: Position in the flattened import sequence.
        id: Document id from the manifest.
        path: Document path from the manifest.
        reason: Human-readable error message.
    """
    index: int
    id: str
    path: str
    reason: str


@dataclass
class ImportResult:
    """Outcome of a fully committed import.

    Attributes:
        imported_count: Documents written by committed batches.
        skipped_count: Documents bypassed by a skip policy. No policy
            exists yet, so this is always 0.
        failures: Documents that could not be staged.
    """
    imported_count: int = 0
    skipped_count: int = 0
    failures: list[DocumentFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


@dataclass
class DeleteResult:
    deleted_count: int = 0

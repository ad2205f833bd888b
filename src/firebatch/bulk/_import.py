"""Import a manifest into the store in bounded atomic batches."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from ..exceptions import BatchCommitError, SentinelError, StoreError
from ..manifest import DocumentRecord, flatten_records, read_manifest
from ..sentinels import DeleteField, find_sentinels, resolve
from ._types import DocumentFailure, ImportOptions, ImportResult

if TYPE_CHECKING:
    from ..store import DocumentStore

logger = logging.getLogger(__name__)


def _chunks(records: list[DocumentRecord], size: int):
    """Yield ``(chunk_index, start, chunk)`` slices of at most *size*."""
    for chunk_index, start in enumerate(range(0, len(records), size)):
        yield chunk_index, start, records[start:start + size]


def _prepare_data(data: dict) -> dict:
    """Resolve markers for a whole-document write.

    Imports replace documents rather than merge into them, and Firestore
    only accepts field deletes in merge writes.
    """
    for field_path, sentinel in find_sentinels(data):
        if isinstance(sentinel, DeleteField):
            raise SentinelError(
                field_path, "delete markers cannot be imported; documents are "
                "replaced, not merged",
            )
    return resolve(data)


def _stage_chunk(store: DocumentStore, batch, chunk: list[DocumentRecord],
                 start: int, resolve_sentinels: bool) -> list[DocumentFailure]:
    """Stage a ``set`` for every document in *chunk*; return the ones that failed.

    A failing document is left out of the batch and the rest are still
    staged.
    """
    failures: list[DocumentFailure] = []
    for offset, record in enumerate(chunk):
        try:
            ref = store.document_ref(record.path)
            data = _prepare_data(record.data) if resolve_sentinels else record.data
            batch.set(ref, data)
        except (ValueError, TypeError, SentinelError) as exc:
            failures.append(DocumentFailure(
                index=start + offset, id=record.id, path=record.path,
                reason=str(exc),
            ))
            logger.debug("Skipping %s: %s", record.path, exc)
    return failures


def import_data(store: DocumentStore, options: ImportOptions) -> ImportResult:
    """Import the manifest at ``options.input_path``.

    Documents are split into ``ceil(n / batch_size)`` consecutive chunks,
    each committed as one atomic batch, strictly in order. A commit
    failure stops the import; earlier chunks stay applied.

    Raises:
        InvalidBatchSize: *batch_size* is outside ``options.limits``.
            Raised before the file is opened.
        ManifestNotFoundError: the input file does not exist.
        ReadError: the input file could not be read.
        StructureError: the manifest is malformed.
        BatchCommitError: a chunk failed to commit. Carries
            ``committed_count`` and ``partial_success``.
    """
    batch_size = options.limits.check(options.batch_size)

    records = read_manifest(options.input_path)
    if options.include_subcollections:
        records = list(flatten_records(records))

    total = len(records)
    result = ImportResult()
    logger.info("Importing %d document(s) from %s in %d batch(es) of up to %d",
                total, options.input_path, math.ceil(total / batch_size), batch_size)

    for chunk_index, start, chunk in _chunks(records, batch_size):
        end = start + len(chunk)
        batch = store.batch()
        failures = _stage_chunk(store, batch, chunk, start, options.resolve_sentinels)
        result.failures.extend(failures)

        try:
            batch.commit()
        except StoreError as exc:
            raise BatchCommitError(
                f"Batch {chunk_index + 1} (documents {start}-{end - 1}) failed "
                f"to commit: {exc}",
                cause=exc.cause or exc,
                committed_count=result.imported_count,
                chunk_index=chunk_index,
                resume_index=start,
                failures=result.failures,
            ) from exc

        result.imported_count += len(chunk) - len(failures)
        logger.debug("Committed batch %d: documents %d-%d", chunk_index + 1, start, end - 1)
        if options.on_progress is not None:
            options.on_progress(end, total)

    logger.info("Imported %d document(s), %d failed",
                result.imported_count, result.failed_count)
    return result

"""Export a collection (optionally with subcollections) to a manifest."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..manifest import DocumentRecord, write_manifest
from ..paths import join_path, require_collection_path
from ._types import ExportOptions, ExportResult

if TYPE_CHECKING:
    from ..store import DocumentStore

logger = logging.getLogger(__name__)


def _export_documents(store: DocumentStore, collection_path: str, *,
                      include_subcollections: bool,
                      on_progress=None) -> list[DocumentRecord]:
    """Read *collection_path* in full and build its records.

    *on_progress* is only passed at the top level; nested collections
    never report progress.
    """
    docs = store.get_all_documents(collection_path)
    total = len(docs)
    records: list[DocumentRecord] = []

    for processed, doc in enumerate(docs, start=1):
        record = DocumentRecord(id=doc.id, path=doc.path, data=doc.data)
        if include_subcollections:
            names = store.list_subcollection_names(doc.path)
            if names:
                record.subcollections = {
                    name: _export_documents(
                        store, join_path(doc.path, name),
                        include_subcollections=True,
                    )
                    for name in names
                }
        records.append(record)
        if on_progress is not None:
            on_progress(processed, total)

    return records


def export_collection(store: DocumentStore, options: ExportOptions) -> ExportResult:
    """Export every document in ``options.collection_path``.

    The manifest is written to ``options.output_path`` only after the
    whole document tree has been read, so a store failure leaves no file.

    Raises:
        InvalidPathError: *collection_path* is not a collection path.
        StoreError: a read failed; nothing was written.
        WriteError: the manifest could not be written.
    """
    collection_path = require_collection_path(options.collection_path)
    records = _export_documents(
        store, collection_path,
        include_subcollections=options.include_subcollections,
        on_progress=options.on_progress,
    )

    if options.output_path:
        write_manifest(options.output_path, records)

    logger.info("Exported %d document(s) from %s", len(records), collection_path)
    return ExportResult(
        exported_count=len(records),
        output_path=options.output_path,
        documents=records,
    )

"""Recursive collection delete and single-document delete.

Each page of a collection is deleted in its own batch, after the
subcollections of every document on the page have been deleted in
their own batches. Nothing spans a parent and its subcollections, so an
interrupted delete can leave a parent gone with some subcollection
documents remaining, or the reverse. Re-running the delete finishes it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..exceptions import StoreError
from ..paths import join_path, require_collection_path, require_document_path
from ._types import FIRESTORE_LIMITS, BatchLimits, ConfirmCallback, DeleteResult

if TYPE_CHECKING:
    from ..store import DocumentStore

logger = logging.getLogger(__name__)


def _delete_pages(store: DocumentStore, collection_path: str, page_size: int,
                  deleted: list[int]) -> int:
    """Delete *collection_path* page by page; return the documents removed.

    ``deleted[0]`` tracks the running total across the whole recursion so
    a failure can report how much was already applied.
    """
    count = 0
    while True:
        page = store.get_documents_page(collection_path, page_size)
        if not page:
            break

        batch = store.batch()
        for doc in page:
            for name in store.list_subcollection_names(doc.path):
                count += _delete_pages(store, join_path(doc.path, name), page_size, deleted)
            batch.delete(doc.ref)
        batch.commit()
        count += len(page)
        deleted[0] += len(page)
        logger.debug("Deleted %d document(s) from %s", len(page), collection_path)

        if len(page) < page_size:
            break
    return count


def delete_collection(store: DocumentStore, collection_path: str,
                      confirm: ConfirmCallback | None = None, *,
                      limits: BatchLimits = FIRESTORE_LIMITS) -> DeleteResult:
    """Delete every document in *collection_path* and all subcollections.

    *confirm* is called once, before any store access; a falsy answer
    returns ``deleted_count=0`` without touching the store. Nested
    subcollections are never confirmed separately.

    Raises:
        InvalidPathError: *collection_path* is not a collection path.
        StoreError: a read or commit failed. ``processed_count`` holds the
            number of documents already deleted; they are not restored.
    """
    require_collection_path(collection_path)
    if confirm is not None and not confirm():
        logger.info("Delete of %s cancelled", collection_path)
        return DeleteResult(deleted_count=0)

    deleted = [0]
    try:
        count = _delete_pages(store, collection_path, limits.max_batch_size, deleted)
    except StoreError as exc:
        exc.processed_count = deleted[0]
        raise
    logger.info("Deleted %d document(s) under %s", count, collection_path)
    return DeleteResult(deleted_count=count)


def delete_document(store: DocumentStore, document_path: str) -> None:
    """Delete a single document. Its subcollections are left in place."""
    require_document_path(document_path)
    store.delete_document(document_path)
    logger.info("Deleted document %s", document_path)

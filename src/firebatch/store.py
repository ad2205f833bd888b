"""Document store interface and the Firestore adapter.

The bulk engine only talks to a :class:`DocumentStore`. :class:`FirestoreStore`
implements it on top of ``google.cloud.firestore.Client``; tests supply an
in-memory stand-in with the same methods.
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import firestore
from google.cloud.firestore_v1 import DocumentReference, GeoPoint
from google.oauth2 import service_account

from .exceptions import StoreError
from .paths import require_collection_path, require_document_path

logger = logging.getLogger(__name__)

__all__ = [
    "StoredDocument", "WriteBatch", "DocumentStore", "StoreConfig",
    "FirestoreStore", "to_json_value",
]


@dataclass
class StoredDocument:
    """A document read from the store.

    Attributes:
        id: Last path segment.
        path: Fully qualified slash path.
        data: Field values, already converted to JSON-ready values.
        ref: Store-native reference, usable with :meth:`WriteBatch.set`
            and :meth:`WriteBatch.delete`.
    """
    id: str
    path: str
    data: dict[str, Any] = field(default_factory=dict)
    ref: Any = None


class WriteBatch(Protocol):
    """An atomic group of writes: all staged mutations apply or none do."""

    def set(self, ref: Any, data: dict[str, Any]) -> None: ...

    def delete(self, ref: Any) -> None: ...

    def commit(self) -> Any: ...


class DocumentStore(Protocol):
    """Store operations required by the bulk engine."""

    def get_all_documents(self, collection_path: str) -> list[StoredDocument]: ...

    def list_subcollection_names(self, document_path: str) -> list[str]: ...

    def get_documents_page(self, collection_path: str, limit: int) -> list[StoredDocument]: ...

    def batch(self) -> WriteBatch: ...

    def document_ref(self, path: str) -> Any: ...

    def delete_document(self, path: str) -> None: ...


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

def to_json_value(value: Any) -> Any:
    """Convert Firestore-native field values into JSON-ready values.

    Timestamps become ISO 8601 strings; bytes, geo points and document
    references become tagged dicts (``{"_type": ...}``).
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return {"_type": "bytes", "base64": base64.b64encode(value).decode("ascii")}
    if isinstance(value, GeoPoint):
        return {"_type": "geopoint", "lat": value.latitude, "lng": value.longitude}
    if isinstance(value, DocumentReference):
        return {"_type": "doc_ref", "path": value.path}
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Firestore adapter
# ---------------------------------------------------------------------------

@dataclass
class StoreConfig:
    """Connection settings for :meth:`FirestoreStore.from_config`.

    Attributes:
        project_id: Google Cloud project. Inferred from the credentials
            or the environment when ``None``.
        credential_path: Service-account JSON key. Application default
            credentials are used when ``None``.
        emulator_host: ``host:port`` of a local Firestore emulator.
        database: Named database; the default database when ``None``.
    """
    project_id: str | None = None
    credential_path: str | None = None
    emulator_host: str | None = None
    database: str | None = None


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Translate Google API and auth failures raised inside the block into StoreError."""
    try:
        yield
    except (GoogleAPIError, GoogleAuthError) as exc:
        raise StoreError(f"{action} failed: {exc}", exc) from exc


class _FirestoreBatch:
    """Wraps a Firestore ``WriteBatch`` so commit failures raise StoreError."""

    def __init__(self, batch):
        self._batch = batch
        self.size = 0

    def set(self, ref, data: dict[str, Any]) -> None:
        self._batch.set(ref, data)
        self.size += 1

    def delete(self, ref) -> None:
        self._batch.delete(ref)
        self.size += 1

    def commit(self):
        with _store_errors(f"Batch commit ({self.size} write(s))"):
            return self._batch.commit()


class FirestoreStore:
    """:class:`DocumentStore` backed by ``google.cloud.firestore.Client``."""

    def __init__(self, client: firestore.Client):
        self._client = client

    def __repr__(self) -> str:
        return f"FirestoreStore(project={self._client.project!r})"

    @classmethod
    def from_config(cls, config: StoreConfig) -> FirestoreStore:
        """Create a client from *config*.

        Uses the service-account key at ``config.credential_path`` when
        set (its project wins unless ``project_id`` is given), otherwise
        application default credentials.
        """
        if config.emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = config.emulator_host
            logger.debug("Using Firestore emulator at %s", config.emulator_host)

        kwargs: dict[str, Any] = {}
        if config.database:
            kwargs["database"] = config.database

        if config.credential_path:
            creds = service_account.Credentials.from_service_account_file(
                config.credential_path
            )
            project = config.project_id or creds.project_id
            client = firestore.Client(project=project, credentials=creds, **kwargs)
        else:
            client = firestore.Client(project=config.project_id, **kwargs)
        return cls(client)

    @property
    def client(self) -> firestore.Client:
        return self._client

    def _to_stored(self, snapshot) -> StoredDocument:
        return StoredDocument(
            id=snapshot.id,
            path=snapshot.reference.path,
            data=to_json_value(snapshot.to_dict() or {}),
            ref=snapshot.reference,
        )

    def get_all_documents(self, collection_path: str) -> list[StoredDocument]:
        require_collection_path(collection_path)
        with _store_errors(f"Reading collection {collection_path}"):
            snapshots = list(self._client.collection(collection_path).stream())
        return [self._to_stored(s) for s in snapshots]

    def list_subcollection_names(self, document_path: str) -> list[str]:
        require_document_path(document_path)
        with _store_errors(f"Listing subcollections of {document_path}"):
            return [c.id for c in self._client.document(document_path).collections()]

    def get_documents_page(self, collection_path: str, limit: int) -> list[StoredDocument]:
        require_collection_path(collection_path)
        with _store_errors(f"Reading collection {collection_path}"):
            query = self._client.collection(collection_path).limit(limit)
            snapshots = list(query.stream())
        return [self._to_stored(s) for s in snapshots]

    def batch(self) -> _FirestoreBatch:
        return _FirestoreBatch(self._client.batch())

    def document_ref(self, path: str) -> DocumentReference:
        require_document_path(path)
        return self._client.document(path)

    def delete_document(self, path: str) -> None:
        ref = self.document_ref(path)
        with _store_errors(f"Deleting {path}"):
            ref.delete()

"""Shared fixtures for firebatch tests."""

import json

import pytest
from click.testing import CliRunner

from firebatch.exceptions import StoreError
from firebatch.paths import is_document_path, last_segment
from firebatch.store import StoredDocument


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class MemoryBatch:
    def __init__(self, store):
        self._store = store
        self.writes = []

    def set(self, ref, data):
        if ref in self._store.reject_on_set:
            raise TypeError("Cannot convert to a Firestore Value")
        self.writes.append(("set", ref, data))

    def delete(self, ref):
        self.writes.append(("delete", ref, None))

    def commit(self):
        self._store.calls.append(("commit", len(self.writes)))
        self._store.commit_count += 1
        if self._store.commit_count in self._store.fail_on_commit:
            raise StoreError("commit rejected", RuntimeError("quota exceeded"))
        for op, ref, data in self.writes:
            if op == "set":
                self._store.docs[ref] = data
            else:
                self._store.docs.pop(ref, None)
        self._store.commits.append(list(self.writes))


class MemoryStore:
    """DocumentStore over a flat ``{path: data}`` dict.

    Refs are plain path strings. Every store call is appended to
    ``calls``; committed batches to ``commits``. Commit numbers (1-based)
    in ``fail_on_commit`` raise StoreError; collection paths in
    ``fail_reads`` raise on read; refs in ``reject_on_set`` raise
    TypeError when staged.
    """

    def __init__(self, docs=None):
        self.docs = dict(docs or {})
        self.calls = []
        self.commits = []
        self.commit_count = 0
        self.fail_on_commit = set()
        self.fail_reads = set()
        self.reject_on_set = set()

    def _children(self, collection_path):
        prefix = collection_path + "/"
        return sorted(
            p for p in self.docs
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def _read(self, collection_path, limit=None):
        if collection_path in self.fail_reads:
            raise StoreError(f"read {collection_path} failed", RuntimeError("unavailable"))
        paths = self._children(collection_path)
        if limit is not None:
            paths = paths[:limit]
        return [
            StoredDocument(id=last_segment(p), path=p, data=self.docs[p], ref=p)
            for p in paths
        ]

    def get_all_documents(self, collection_path):
        self.calls.append(("get_all", collection_path))
        return self._read(collection_path)

    def get_documents_page(self, collection_path, limit):
        self.calls.append(("page", collection_path, limit))
        return self._read(collection_path, limit)

    def list_subcollection_names(self, document_path):
        self.calls.append(("subcollections", document_path))
        prefix = document_path + "/"
        names = {p[len(prefix):].split("/", 1)[0] for p in self.docs if p.startswith(prefix)}
        return sorted(names)

    def batch(self):
        self.calls.append(("batch",))
        return MemoryBatch(self)

    def document_ref(self, path):
        if not path or "" in path.split("/") or not is_document_path(path):
            raise ValueError(f"Not a document path: {path!r}")
        return path

    def delete_document(self, path):
        self.calls.append(("delete_document", path))
        self.docs.pop(self.document_ref(path), None)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def memory_store():
    """Return the MemoryStore class, for tests that seed their own documents."""
    return MemoryStore


@pytest.fixture
def users_store():
    """Two users; alice has an orders subcollection with a nested items level."""
    return MemoryStore({
        "users/alice": {"name": "Alice", "age": 30},
        "users/bob": {"name": "Bob", "tags": ["a", "b"]},
        "users/alice/orders/o1": {"total": 12.5},
        "users/alice/orders/o2": {"total": 3},
        "users/alice/orders/o1/items/i1": {"sku": "X-1"},
    })


# ---------------------------------------------------------------------------
# Manifest helpers
# ---------------------------------------------------------------------------

def _make_docs(n, collection="items"):
    return [
        {"id": f"d{i:04d}", "path": f"{collection}/d{i:04d}", "data": {"n": i}}
        for i in range(n)
    ]


@pytest.fixture
def make_docs():
    """Return a factory for *n* manifest document dicts."""
    return _make_docs


@pytest.fixture
def write_manifest_file(tmp_path):
    """Write ``{"documents": docs}`` to a temp file and return its path."""
    def _write(docs, name="manifest.json"):
        p = tmp_path / name
        p.write_text(json.dumps({"documents": docs}), encoding="utf-8")
        return str(p)
    return _write


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()

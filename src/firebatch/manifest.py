"""Export/import manifest: ``{"documents": [DocumentRecord, ...]}`` as UTF-8 JSON."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ManifestNotFoundError, ReadError, StructureError, WriteError

logger = logging.getLogger(__name__)

__all__ = [
    "DocumentRecord", "dumps_manifest", "loads_manifest",
    "read_manifest", "write_manifest", "flatten_records",
]


@dataclass
class DocumentRecord:
    """One exported document, optionally with its nested subcollections.

    Attributes:
        id: Document id (last path segment).
        path: Fully qualified slash path.
        data: Field values.
        subcollections: ``{name: [DocumentRecord, ...]}`` or ``None``.
    """
    id: str
    path: str
    data: dict[str, Any]
    subcollections: dict[str, list[DocumentRecord]] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "path": self.path, "data": self.data}
        if self.subcollections:
            out["subcollections"] = {
                name: [r.to_dict() for r in records]
                for name, records in self.subcollections.items()
            }
        return out

    @classmethod
    def from_dict(cls, raw: Any, index: int | None = None) -> DocumentRecord:
        """Validate and build a record; *index* is reported in errors."""
        if not isinstance(raw, dict):
            raise StructureError("document must be an object", index)
        for key, kind, label in (("id", str, "a string"),
                                 ("path", str, "a string"),
                                 ("data", dict, "an object")):
            if key not in raw:
                raise StructureError(f"missing '{key}'", index)
            if not isinstance(raw[key], kind):
                raise StructureError(f"'{key}' must be {label}", index)

        subcollections = None
        raw_subs = raw.get("subcollections")
        if raw_subs is not None:
            if not isinstance(raw_subs, dict):
                raise StructureError("'subcollections' must be an object", index)
            subcollections = {}
            for name, records in raw_subs.items():
                if not isinstance(records, list):
                    raise StructureError(
                        f"subcollection '{name}' must be a list", index
                    )
                subcollections[name] = [cls.from_dict(r, index) for r in records]
        return cls(raw["id"], raw["path"], raw["data"], subcollections)


def flatten_records(records: list[DocumentRecord]) -> Iterator[DocumentRecord]:
    """Yield each record followed by its subcollection records, depth-first."""
    for record in records:
        yield record
        if record.subcollections:
            for children in record.subcollections.values():
                yield from flatten_records(children)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def dumps_manifest(documents: list[DocumentRecord]) -> str:
    return json.dumps(
        {"documents": [d.to_dict() for d in documents]},
        indent=2, ensure_ascii=False,
    )


def loads_manifest(text: str) -> list[DocumentRecord]:
    """Parse manifest text into records.

    Raises:
        StructureError: Invalid JSON, missing or non-list ``documents``,
            or a malformed document (with its index).
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StructureError(f"Invalid JSON: {exc}") from exc
    if not isinstance(raw, dict) or not isinstance(raw.get("documents"), list):
        raise StructureError("Manifest must be an object with a 'documents' list")
    return [DocumentRecord.from_dict(d, i) for i, d in enumerate(raw["documents"])]


def read_manifest(path: str | Path) -> list[DocumentRecord]:
    """Read and parse a manifest file.

    Raises:
        ManifestNotFoundError: *path* does not exist.
        ReadError: *path* exists but cannot be read or decoded.
        StructureError: see :func:`loads_manifest`.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ManifestNotFoundError(str(path)) from None
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(str(path), exc) from exc
    documents = loads_manifest(text)
    logger.debug("Read %d document(s) from %s", len(documents), path)
    return documents


def _atomic_write_text(path: Path, content: str) -> None:
    """Write *content* to *path* via a temp file in the same directory + rename."""
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def write_manifest(path: str | Path, documents: list[DocumentRecord]) -> None:
    """Serialize *documents* fully, then write them to *path*.

    The target is replaced in one rename, so a failed write leaves any
    existing file untouched.
    """
    path = Path(path)
    try:
        text = dumps_manifest(documents)
    except (TypeError, ValueError) as exc:
        raise WriteError(str(path), exc) from exc
    try:
        _atomic_write_text(path, text)
    except OSError as exc:
        raise WriteError(str(path), exc) from exc
    logger.debug("Wrote %d document(s) to %s", len(documents), path)

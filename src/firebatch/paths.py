"""Slash-path helpers: document/collection classification and validation.

A path addresses a document when it has an even number of segments
(``users/alice``) and a collection when the count is odd (``users``,
``users/alice/orders``).
"""

from __future__ import annotations

from .exceptions import InvalidPathError


def is_document_path(path: str) -> bool:
    """Return ``True`` if *path* has an even number of segments."""
    return len(path.split("/")) % 2 == 0


def is_collection_path(path: str) -> bool:
    """Return ``True`` if *path* has an odd number of segments."""
    return not is_document_path(path)


def validate_path(path: str) -> str:
    """Reject empty paths, leading/trailing slashes and empty segments.

    Returns *path* unchanged so callers can validate inline.
    """
    if not path or not path.strip():
        raise InvalidPathError(path, "path must not be empty")
    if path.startswith("/") or path.endswith("/"):
        raise InvalidPathError(path, "leading or trailing '/' is not allowed")
    if "" in path.split("/"):
        raise InvalidPathError(path, "empty segment ('//') is not allowed")
    return path


def require_collection_path(path: str) -> str:
    """Validate *path* and require collection parity."""
    validate_path(path)
    if not is_collection_path(path):
        raise InvalidPathError(
            path, "expected a collection path (odd number of segments)"
        )
    return path


def require_document_path(path: str) -> str:
    """Validate *path* and require document parity."""
    validate_path(path)
    if not is_document_path(path):
        raise InvalidPathError(
            path, "expected a document path (even number of segments)"
        )
    return path


def last_segment(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def join_path(*parts: str) -> str:
    return "/".join(p for p in parts if p)

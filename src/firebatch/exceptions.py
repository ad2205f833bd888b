"""Exceptions for firebatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .bulk._types import BatchLimits, DocumentFailure


class FirebatchError(Exception):
    """Base class for every error raised by the bulk engine."""


class InvalidPathError(FirebatchError, ValueError):
    """Raised when a slash path is malformed or has the wrong parity."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid path {path!r}: {reason}")


class InvalidBatchSize(FirebatchError, ValueError):
    """Raised when a batch size falls outside the store's batch limits.

    Checked before the input source is opened, so no I/O has happened.
    """

    def __init__(self, size: int, limits: BatchLimits):
        self.size = size
        self.limits = limits
        super().__init__(
            f"Batch size must be between {limits.min_batch_size} and "
            f"{limits.max_batch_size}, got {size}"
        )


# ---------------------------------------------------------------------------
# I/O boundary
# ---------------------------------------------------------------------------

class ManifestNotFoundError(FirebatchError, FileNotFoundError):
    """Raised when the import source does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class ReadError(FirebatchError):
    """Raised when the import source exists but cannot be read."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read {path}: {cause}")


class WriteError(FirebatchError):
    """Raised when an export manifest cannot be written."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {cause}")


class StructureError(FirebatchError, ValueError):
    """Raised when a manifest is not valid JSON or has the wrong shape.

    *index* is the position of the offending document in ``documents``
    when a single record is malformed, else ``None``.
    """

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        if index is not None:
            message = f"document {index}: {message}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class StoreError(FirebatchError):
    """Wraps a failure reported by the underlying document store.

    *processed_count* is the number of documents already applied when the
    failure interrupted a multi-batch operation (recursive delete).
    """

    def __init__(self, message: str, cause: BaseException | None = None,
                 processed_count: int = 0):
        self.cause = cause
        self.processed_count = processed_count
        super().__init__(message)


class BatchCommitError(StoreError):
    """Raised when one import chunk fails to commit.

    Chunks committed before the failure stay applied; nothing is rolled
    back. Resume by importing the documents from *resume_index* onward.

    Attributes:
        committed_count: Documents imported by earlier, successful chunks.
        partial_success: ``True`` when ``committed_count > 0``.
        chunk_index: Zero-based index of the chunk that failed.
        resume_index: Index of the failed chunk's first document.
        failures: Per-document failures recorded before the stop.
    """

    def __init__(self, message: str, *, cause: BaseException | None,
                 committed_count: int, chunk_index: int, resume_index: int,
                 failures: list[DocumentFailure] | None = None):
        super().__init__(message, cause, processed_count=committed_count)
        self.committed_count = committed_count
        self.partial_success = committed_count > 0
        self.chunk_index = chunk_index
        self.resume_index = resume_index
        self.failures = list(failures or [])


# ---------------------------------------------------------------------------
# Sentinel resolution
# ---------------------------------------------------------------------------

def _display_path(field_path: str) -> str:
    return field_path or "<root>"


class SentinelError(FirebatchError, ValueError):
    """Base class for sentinel resolution errors; carries *field_path*."""

    def __init__(self, field_path: str, message: str):
        self.field_path = field_path
        super().__init__(f"Field {_display_path(field_path)!r}: {message}")


class InvalidOperand(SentinelError):
    """Raised when an ``increment`` sentinel lacks a numeric operand."""

    def __init__(self, field_path: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            field_path, f"increment operand must be a {expected}, got {actual}"
        )


class InvalidElements(SentinelError):
    """Raised when an array sentinel's ``elements`` is not a non-empty list."""

    def __init__(self, field_path: str, reason: str = "elements must be a list"):
        super().__init__(field_path, reason)


class InvalidSentinelKind(SentinelError):
    """Raised when a sentinel names a kind the resolver cannot dispatch."""

    def __init__(self, field_path: str, value: str):
        self.value = value
        super().__init__(field_path, f"unknown sentinel kind {value!r}")


class RecursionLimitExceeded(SentinelError):
    """Raised when a value is nested deeper than the resolver allows."""

    def __init__(self, field_path: str, limit: int):
        self.limit = limit
        super().__init__(field_path, f"maximum nesting depth ({limit}) exceeded")

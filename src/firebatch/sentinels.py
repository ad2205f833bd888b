"""Resolve ``$fieldValue`` markers in document data into Firestore transforms.

A marker is a dict whose ``$fieldValue`` key names one of five kinds::

    {"$fieldValue": "serverTimestamp"}
    {"$fieldValue": "increment", "operand": 1}
    {"$fieldValue": "arrayUnion", "elements": ["a", "b"]}
    {"$fieldValue": "arrayRemove", "elements": ["a"]}
    {"$fieldValue": "delete"}

Any other dict, including one with an unrecognised ``$fieldValue`` string,
is ordinary data.

Usage::

    from firebatch.sentinels import resolve

    data = resolve({"visits": {"$fieldValue": "increment", "operand": 1}})
    doc_ref.set(data, merge=True)

Field paths in errors use dots for keys and ``[i]`` for list indices,
e.g. ``items[1].count``.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from google.cloud import firestore

from .exceptions import (
    InvalidElements,
    InvalidOperand,
    InvalidSentinelKind,
    RecursionLimitExceeded,
)

__all__ = [
    "SENTINEL_KEY", "MAX_DEPTH", "SentinelKind",
    "ServerTimestamp", "Increment", "ArrayUnion", "ArrayRemove", "DeleteField",
    "Sentinel", "parse_sentinel", "resolve", "find_sentinels",
]

SENTINEL_KEY = "$fieldValue"
MAX_DEPTH = 100


class SentinelKind(str, Enum):
    """The five ``$fieldValue`` kinds."""
    SERVER_TIMESTAMP = "serverTimestamp"
    INCREMENT = "increment"
    ARRAY_UNION = "arrayUnion"
    ARRAY_REMOVE = "arrayRemove"
    DELETE = "delete"

    def __str__(self) -> str:          # noqa: D105
        return self.value


_KIND_VALUES = frozenset(k.value for k in SentinelKind)


# ---------------------------------------------------------------------------
# Sentinel variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServerTimestamp:
    """Set the field to the commit time on the server."""
    kind = SentinelKind.SERVER_TIMESTAMP

    def to_firestore(self) -> Any:
        return firestore.SERVER_TIMESTAMP


@dataclass(frozen=True)
class Increment:
    """Add *operand* to the field's current numeric value."""
    operand: int | float
    kind = SentinelKind.INCREMENT

    def to_firestore(self) -> Any:
        return firestore.Increment(self.operand)


@dataclass(frozen=True)
class ArrayUnion:
    """Append *elements* not already present in the array field."""
    elements: list = field(default_factory=list)
    kind = SentinelKind.ARRAY_UNION

    def to_firestore(self) -> Any:
        return firestore.ArrayUnion(list(self.elements))


@dataclass(frozen=True)
class ArrayRemove:
    """Remove every occurrence of *elements* from the array field."""
    elements: list = field(default_factory=list)
    kind = SentinelKind.ARRAY_REMOVE

    def to_firestore(self) -> Any:
        return firestore.ArrayRemove(list(self.elements))


@dataclass(frozen=True)
class DeleteField:
    """Remove the field from the document."""
    kind = SentinelKind.DELETE

    def to_firestore(self) -> Any:
        return firestore.DELETE_FIELD


Sentinel = Union[ServerTimestamp, Increment, ArrayUnion, ArrayRemove, DeleteField]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _is_marker(value: Any) -> bool:
    """True if *value* is a dict carrying a known ``$fieldValue`` kind."""
    if not isinstance(value, Mapping):
        return False
    kind = value.get(SENTINEL_KEY)
    return isinstance(kind, str) and kind in _KIND_VALUES


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def _build(spec: Mapping[str, Any], field_path: str) -> Sentinel:
    """Build the variant for a marker dict, validating its payload."""
    kind = spec[SENTINEL_KEY]

    if kind == SentinelKind.SERVER_TIMESTAMP:
        return ServerTimestamp()

    if kind == SentinelKind.INCREMENT:
        operand = spec.get("operand")
        if isinstance(operand, bool) or not isinstance(operand, (int, float)):
            actual = "undefined" if "operand" not in spec else _type_name(operand)
            raise InvalidOperand(field_path, expected="number", actual=actual)
        if not math.isfinite(operand):
            raise InvalidOperand(field_path, expected="number", actual=str(operand))
        return Increment(operand)

    if kind in (SentinelKind.ARRAY_UNION, SentinelKind.ARRAY_REMOVE):
        elements = spec.get("elements")
        if not isinstance(elements, list):
            raise InvalidElements(field_path)
        # Firestore rejects array transforms without values.
        if not elements:
            raise InvalidElements(field_path, "elements must not be empty")
        if kind == SentinelKind.ARRAY_UNION:
            return ArrayUnion(list(elements))
        return ArrayRemove(list(elements))

    if kind == SentinelKind.DELETE:
        return DeleteField()

    raise InvalidSentinelKind(field_path, str(kind))


def parse_sentinel(value: Any, field_path: str = "") -> Sentinel | None:
    """Return the sentinel variant for *value*, or ``None`` for plain data.

    Raises a :class:`~firebatch.exceptions.SentinelError` when *value* is
    a marker whose payload is invalid.
    """
    if not _is_marker(value):
        return None
    return _build(value, field_path)


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------

def _key_path(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def _resolve_at(value: Any, field_path: str, depth: int) -> Any:
    if depth > MAX_DEPTH:
        raise RecursionLimitExceeded(field_path, MAX_DEPTH)

    if isinstance(value, Mapping):
        sentinel = parse_sentinel(value, field_path)
        if sentinel is not None:
            return sentinel.to_firestore()
        return {
            key: _resolve_at(item, _key_path(field_path, key), depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, list):
        return [
            _resolve_at(item, f"{field_path}[{i}]", depth + 1)
            for i, item in enumerate(value)
        ]

    return value


def resolve(value: Any) -> Any:
    """Return a copy of *value* with every marker replaced by its transform.

    The input is never modified. The first invalid marker in depth-first
    key order raises; no partial result is returned.

    Raises:
        InvalidOperand: ``increment`` without a finite numeric operand.
        InvalidElements: array marker whose ``elements`` is not a list.
        RecursionLimitExceeded: nesting deeper than :data:`MAX_DEPTH`.
    """
    return _resolve_at(value, "", 0)


def find_sentinels(value: Any) -> Iterator[tuple[str, Sentinel]]:
    """Yield ``(field_path, sentinel)`` for every marker in *value*.

    Same walk order and validation as :func:`resolve`, without converting.
    """
    stack: list[tuple[Any, str, int]] = [(value, "", 0)]
    while stack:
        node, field_path, depth = stack.pop()
        if depth > MAX_DEPTH:
            raise RecursionLimitExceeded(field_path, MAX_DEPTH)
        if isinstance(node, Mapping):
            sentinel = parse_sentinel(node, field_path)
            if sentinel is not None:
                yield field_path, sentinel
                continue
            children = [(item, _key_path(field_path, key), depth + 1)
                        for key, item in node.items()]
        elif isinstance(node, list):
            children = [(item, f"{field_path}[{i}]", depth + 1)
                        for i, item in enumerate(node)]
        else:
            continue
        stack.extend(reversed(children))

"""Document store value types.

Paths alternate collection and document ids
(``trainees/t1/grants/p1``). Field paths in updates may be dotted
(``modules.workouts``) and only touch that nested field.
"""

from __future__ import annotations

import copy
import operator
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from fitteam.core.exceptions import ValidationError


@dataclass(frozen=True)
class Document:
    """A stored document snapshot."""

    path: str
    data: dict[str, Any]

    @property
    def id(self) -> str:
        """Last path segment."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def collection_id(self) -> str:
        """Name of the collection holding this document."""
        return segments(self.path)[-2]

    @property
    def parent_id(self) -> str | None:
        """Id of the document owning this document's collection, if nested."""
        parts = segments(self.path)
        if len(parts) < 4:
            return None
        return parts[-3]


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda value, options: value in options,
}


@dataclass(frozen=True)
class Filter:
    """A single field predicate used by queries."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValidationError(f"Unsupported query operator: {self.op}")

    def matches(self, data: Mapping[str, Any]) -> bool:
        """Evaluate against a document's data. Missing fields never match."""
        found, value = get_field(data, self.field)
        if not found:
            return False
        try:
            return bool(_OPERATORS[self.op](value, self.value))
        except TypeError:
            return False


@dataclass(frozen=True)
class OrderBy:
    """Sort instruction."""

    field: str
    descending: bool = False


class WriteKind(str, Enum):
    """Kinds of write in a batch."""

    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Write:
    """One pending write in a batch."""

    kind: WriteKind
    path: str
    data: dict[str, Any] = field(default_factory=dict)
    merge: bool = False
    precondition: dict[str, Any] | None = None


def segments(path: str) -> list[str]:
    """Split a path, rejecting empty segments."""
    parts = path.strip("/").split("/")
    if not all(parts):
        raise ValidationError(f"Invalid document path: {path!r}")
    return parts


def document_path(path: str) -> str:
    """Normalize and validate a document path (even number of segments)."""
    parts = segments(path)
    if len(parts) % 2:
        raise ValidationError(f"Not a document path: {path!r}")
    return "/".join(parts)


def collection_path(path: str) -> str:
    """Normalize and validate a collection path (odd number of segments)."""
    parts = segments(path)
    if not len(parts) % 2:
        raise ValidationError(f"Not a collection path: {path!r}")
    return "/".join(parts)


def parent_collection(path: str) -> str:
    """Collection path containing a document."""
    return document_path(path).rsplit("/", 1)[0]


def get_field(data: Mapping[str, Any], dotted: str) -> tuple[bool, Any]:
    """Look up a dotted field path. Returns (found, value)."""
    current: Any = data
    for key in dotted.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return False, None
        current = current[key]
    return True, current


def apply_update(existing: Mapping[str, Any], fields: Mapping[str, Any]) -> dict[str, Any]:
    """Apply field-scoped updates to a copy of ``existing``.

    Dotted keys replace only the addressed nested field, so concurrent
    updates to sibling fields do not clobber each other.
    """
    result = copy.deepcopy(dict(existing))
    for dotted, value in fields.items():
        keys = dotted.split(".")
        target = result
        for key in keys[:-1]:
            child = target.get(key)
            if not isinstance(child, dict):
                child = {}
                target[key] = child
            target = child
        target[keys[-1]] = copy.deepcopy(value)
    return result


def merge_data(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge used by ``set(..., merge=True)``."""
    result = copy.deepcopy(dict(existing))
    for key, value in incoming.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = merge_data(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def precondition_holds(data: Mapping[str, Any] | None, precondition: Mapping[str, Any]) -> bool:
    """Every field in ``precondition`` must equal the stored value."""
    if data is None:
        return False
    for dotted, expected in precondition.items():
        found, value = get_field(data, dotted)
        if not found or value != expected:
            return False
    return True


def apply_write(current: Mapping[str, Any] | None, write: Write) -> dict[str, Any] | None:
    """Compute the document after ``write``. Returns None for deletes."""
    if write.kind is WriteKind.DELETE:
        return None
    if write.kind is WriteKind.UPDATE:
        return apply_update(current or {}, write.data)
    if write.merge and current is not None:
        return merge_data(current, write.data)
    return copy.deepcopy(write.data)


def sort_key(value: Any) -> tuple[int, Any]:
    """Sort missing/None values first, then by value."""
    if value is None:
        return (0, 0)
    return (1, value)


def refine(
    docs: list[Document],
    filters: list[Filter] | None,
    order_by: list[OrderBy] | None,
    limit: int | None,
) -> list[Document]:
    """Filter, order and limit query results."""
    result = [doc for doc in docs if all(f.matches(doc.data) for f in filters or [])]
    result.sort(key=lambda doc: doc.path)
    for order in reversed(order_by or []):
        result.sort(
            key=lambda doc, o=order: sort_key(get_field(doc.data, o.field)[1]),
            reverse=order.descending,
        )
    if limit is not None:
        result = result[:limit]
    return result

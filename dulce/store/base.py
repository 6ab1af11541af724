"""
Document Store Interface

The narrow surface the resource layer needs from the persistence
engine: filtered/ordered/limited collection queries and lookups by id.
"""

import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from dulce.utils.dates import to_datetime


@dataclass(frozen=True)
class Document:
    """A raw document: its id and field data."""
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


# (field, op, value), e.g. ("movementDate", ">=", since)
Filter = Tuple[str, str, Any]


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda left, right: left in right,
}


def _sortable(value: Any) -> Tuple[int, Any]:
    """Total order over mixed field values: numbers, then dates, then text."""
    if isinstance(value, (bool, int, float)):
        return (0, value)
    try:
        return (1, to_datetime(value))
    except (TypeError, ValueError):
        return (2, str(value))


def matches(data: Dict[str, Any], filters: Sequence[Filter]) -> bool:
    """Check a document's data against all filters (AND semantics)."""
    for field_name, op, expected in filters:
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        if data.get(field_name) is None:
            return False

        actual = data[field_name]
        if isinstance(expected, datetime):
            try:
                actual = to_datetime(actual)
                expected = to_datetime(expected)
            except (TypeError, ValueError):
                return False

        try:
            if not _OPERATORS[op](actual, expected):
                return False
        except TypeError:
            return False
    return True


def apply_query(
    documents: Sequence[Document],
    filters: Sequence[Filter] = (),
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> List[Document]:
    """
    Filter, order and limit documents in memory.

    Without order_by documents come back in id order. Documents missing
    the order_by field sort last in either direction.
    """
    selected = [d for d in documents if matches(d.data, filters)]

    if order_by:
        present = [d for d in selected if d.data.get(order_by) is not None]
        missing = [d for d in selected if d.data.get(order_by) is None]
        present.sort(key=lambda d: _sortable(d.data[order_by]), reverse=descending)
        selected = present + missing
    else:
        selected.sort(key=lambda d: d.id)

    if limit is not None:
        selected = selected[:limit]
    return selected


class DocumentStore(ABC):
    """Async document store used by resource providers and tools."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """Query a collection with filters, ordering and a limit."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Get one document by id, or None if it does not exist."""

    async def subcollection(
        self,
        collection: str,
        doc_id: str,
        name: str,
    ) -> List[Document]:
        """List documents of a nested collection (e.g. persons/{id}/addresses)."""
        return await self.query(f"{collection}/{doc_id}/{name}")

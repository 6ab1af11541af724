"""
In-Memory Document Store

Dict-backed store for local development and tests. Tracks how many
queries and lookups it served so callers can assert on recomputation.
"""

import copy
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from dulce.store.base import Document, DocumentStore, Filter, apply_query


logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    Document store held in process memory.

    Collections map document ids to field dicts. Nested collections use
    slash paths, e.g. "persons/p1/addresses".
    """

    def __init__(self, collections: Optional[Mapping[str, Mapping[str, Dict[str, Any]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: Counter = Counter()
        for name, docs in (collections or {}).items():
            self.load(name, docs)

    def load(self, collection: str, documents: Mapping[str, Dict[str, Any]]) -> None:
        """Replace a collection's contents."""
        self._collections[collection] = {
            doc_id: copy.deepcopy(dict(data)) for doc_id, data in documents.items()
        }

    def put(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Insert or replace one document."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def delete(self, collection: str, doc_id: str) -> bool:
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    def _documents(self, collection: str) -> Iterable[Document]:
        for doc_id, data in self._collections.get(collection, {}).items():
            yield Document(id=doc_id, data=copy.deepcopy(data))

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        self.calls["query"] += 1
        self.calls[f"query:{collection}"] += 1
        return apply_query(list(self._documents(collection)), filters, order_by, descending, limit)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        self.calls["get"] += 1
        self.calls[f"get:{collection}"] += 1
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

"""
SQL Document Store

Documents stored as JSON rows in a single `documents` table, one row per
(collection, doc_id). Sessions are synchronous SQLAlchemy sessions run
in worker threads so the event loop is never blocked; filtering and
ordering are applied over the decoded JSON so behaviour is identical on
PostgreSQL and SQLite.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from dulce.store.base import Document, DocumentStore, Filter, apply_query
from dulce.store.models import StoredDocument
from dulce.store.session import session_scope


logger = logging.getLogger(__name__)


def _to_json_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Make field data JSON-safe (datetimes become ISO strings)."""
    def default_handler(obj):
        if hasattr(obj, "isoformat"):
            return obj.isoformat()
        return str(obj)

    return json.loads(json.dumps(data, default=default_handler))


class SqlDocumentStore(DocumentStore):
    """Document store over SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # =========================================================================
    # Reads
    # =========================================================================

    def _load_collection(self, collection: str) -> List[Document]:
        with session_scope(self._session_factory) as session:
            rows = (
                session.query(StoredDocument)
                .filter(StoredDocument.collection == collection)
                .all()
            )
            return [Document(id=row.doc_id, data=dict(row.data or {})) for row in rows]

    def _load_one(self, collection: str, doc_id: str) -> Optional[Document]:
        with session_scope(self._session_factory) as session:
            row = (
                session.query(StoredDocument)
                .filter(
                    StoredDocument.collection == collection,
                    StoredDocument.doc_id == doc_id,
                )
                .first()
            )
            if row is None:
                return None
            return Document(id=row.doc_id, data=dict(row.data or {}))

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Document]:
        documents = await asyncio.to_thread(self._load_collection, collection)
        result = apply_query(documents, filters, order_by, descending, limit)
        logger.debug(f"Query {collection}: {len(result)}/{len(documents)} documents")
        return result

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await asyncio.to_thread(self._load_one, collection, doc_id)

    # =========================================================================
    # Writes (seeding and maintenance)
    # =========================================================================

    def _upsert(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with session_scope(self._session_factory) as session:
            row = (
                session.query(StoredDocument)
                .filter(
                    StoredDocument.collection == collection,
                    StoredDocument.doc_id == doc_id,
                )
                .first()
            )
            if row is None:
                session.add(StoredDocument(
                    collection=collection,
                    doc_id=doc_id,
                    data=_to_json_data(data),
                ))
            else:
                row.data = _to_json_data(data)

    async def put(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Insert or replace one document."""
        await asyncio.to_thread(self._upsert, collection, doc_id, data)

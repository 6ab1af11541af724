"""
Document Store Layer

- DocumentStore: async query/get interface consumed by providers and tools
- InMemoryDocumentStore: dict-backed store for development and tests
- SqlDocumentStore: SQLAlchemy-backed store (PostgreSQL / SQLite)
"""

from .base import Document, DocumentStore, Filter, apply_query, matches
from .memory import InMemoryDocumentStore
from .models import Base, StoredDocument, AuditLogRecord
from .session import (
    create_db_engine,
    get_database_url,
    init_db,
    make_session_factory,
    session_scope,
)
from .sql import SqlDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "Filter",
    "apply_query",
    "matches",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    # SQL plumbing
    "Base",
    "StoredDocument",
    "AuditLogRecord",
    "create_db_engine",
    "get_database_url",
    "init_db",
    "make_session_factory",
    "session_scope",
]

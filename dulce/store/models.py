"""
SQLAlchemy Models

Tables backing the SQL document store and the audit sink.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """
    One document of one collection.

    Nested collections use slash paths as the collection name
    (e.g. "persons/p1/addresses").
    """
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(255), nullable=False)
    doc_id = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),
        Index("idx_documents_collection", "collection"),
    )

    def __repr__(self):
        return f"<StoredDocument {self.collection}/{self.doc_id}>"


class AuditLogRecord(Base):
    """Audit trail of PII-sensitive reads."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    action = Column(String(100), nullable=False)
    resource_type = Column(String(100), nullable=False)
    resource_id = Column(String(255), nullable=False)
    accessed_fields = Column(JSON, default=list)
    requester = Column(String(255), nullable=False)
    purpose = Column(Text, default="")
    success = Column(Boolean, default=True, nullable=False)
    error_message = Column(Text)

    __table_args__ = (
        Index("idx_audit_resource", "resource_type", "resource_id"),
    )

    def __repr__(self):
        return f"<AuditLogRecord {self.action} {self.resource_type}/{self.resource_id}>"

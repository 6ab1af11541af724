"""Audit trail for PII-sensitive reads."""

from .logger import AuditLogEntry, AuditLogger, AuditSink, MemoryAuditSink, SqlAuditSink

__all__ = [
    "AuditLogEntry",
    "AuditLogger",
    "AuditSink",
    "MemoryAuditSink",
    "SqlAuditSink",
]

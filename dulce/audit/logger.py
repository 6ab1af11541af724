"""
Audit Logging

Structured audit trail for PII-sensitive reads. Audit writes are
best-effort: a failing sink is logged locally and never surfaces to the
caller, so auditing cannot break a successful read.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from dulce.store.models import AuditLogRecord
from dulce.store.session import session_scope


logger = logging.getLogger(__name__)


@dataclass
class AuditLogEntry:
    """Audit log entry for compliance tracking."""
    action: str
    resource_type: str
    resource_id: str
    accessed_fields: List[str]
    requester: str
    purpose: str
    success: bool = True
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(ABC):
    """Destination for audit entries."""

    @abstractmethod
    async def write(self, entry: AuditLogEntry) -> None:
        """Persist one entry. May raise; callers go through AuditLogger."""


class SqlAuditSink(AuditSink):
    """Stores audit entries in the audit_logs table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _insert(self, entry: AuditLogEntry) -> None:
        with session_scope(self._session_factory) as session:
            session.add(AuditLogRecord(
                timestamp=entry.timestamp,
                action=entry.action,
                resource_type=entry.resource_type,
                resource_id=entry.resource_id,
                accessed_fields=list(entry.accessed_fields),
                requester=entry.requester,
                purpose=entry.purpose,
                success=entry.success,
                error_message=entry.error_message,
            ))

    async def write(self, entry: AuditLogEntry) -> None:
        await asyncio.to_thread(self._insert, entry)


class MemoryAuditSink(AuditSink):
    """Keeps entries in a list. Used in development and tests."""

    def __init__(self):
        self.entries: List[AuditLogEntry] = []

    async def write(self, entry: AuditLogEntry) -> None:
        self.entries.append(entry)


class AuditLogger:
    """Writes audit entries without ever failing the calling operation."""

    def __init__(self, sink: AuditSink):
        self._sink = sink

    async def log(self, entry: AuditLogEntry) -> bool:
        """Write an entry. Returns False (and logs) if the sink failed."""
        try:
            await self._sink.write(entry)
        except Exception as e:
            logger.error(
                f"Failed to write audit log {entry.action} on "
                f"{entry.resource_type}/{entry.resource_id}: {e}"
            )
            return False

        logger.info(f"Audit logged: {entry.action} on {entry.resource_type}/{entry.resource_id}")
        return True

    async def log_pii_access(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        accessed_fields: List[str],
        requester: str,
        purpose: str,
        success: bool = True,
        error_message: Optional[str] = None,
    ) -> bool:
        """Log a read of personally identifying data."""
        return await self.log(AuditLogEntry(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            accessed_fields=accessed_fields,
            requester=requester,
            purpose=purpose,
            success=success,
            error_message=error_message,
        ))

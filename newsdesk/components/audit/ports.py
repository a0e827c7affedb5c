"""
Audit component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from newsdesk.components.audit.models import AuditQuery, RequestContext
from newsdesk.domain.entities import AuditLogEvent


class AuditSinkPort(Protocol):
    """Receives audit events. Ordering and durability belong to the sink."""

    def record(self, event: AuditLogEvent) -> None:
        """Store or forward one event."""
        ...


class AuditStorePort(Protocol):
    """Queryable audit log storage."""

    def get_by_id(self, event_id: UUID) -> AuditLogEvent | None:
        """Get event by ID."""
        ...

    def query(self, query: AuditQuery) -> tuple[list[AuditLogEvent], int]:
        """Events matching the filters, newest first, plus the total count."""
        ...

    def count_by_level(self, query: AuditQuery) -> dict[str, int]:
        """Number of matching events per level."""
        ...


class AuditPort(Protocol):
    """Receives one audit event per mutating operation. Must not raise."""

    def emit(
        self,
        *,
        method: str,
        endpoint: str,
        status_code: int,
        user_id: UUID | None = None,
        context: RequestContext | None = None,
        message: str | None = None,
        metadata: dict[str, Any] | None = None,
        action: str | None = None,
        module: str | None = None,
    ) -> AuditLogEvent | None: ...

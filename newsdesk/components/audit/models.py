"""
Audit component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from newsdesk.components.errors import OperationError
from newsdesk.domain.entities import AuditLogEvent, LogLevel


@dataclass(frozen=True)
class RequestContext:
    """Transport metadata of the request that triggered an operation."""

    endpoint: str | None = None
    method: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class AuditQuery:
    """Query parameters for the audit log."""

    user_id: UUID | None = None
    module: str | None = None
    action: str | None = None
    level: LogLevel | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int = 50
    offset: int = 0


# --- Input Models ---


@dataclass(frozen=True)
class QueryLogsInput:
    user_id: UUID | None = None
    module: str | None = None
    action: str | None = None
    level: LogLevel | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    page: int = 1
    limit: int = 50


@dataclass(frozen=True)
class GetLogInput:
    event_id: UUID


@dataclass(frozen=True)
class LogStatsInput:
    start_time: datetime | None = None
    end_time: datetime | None = None


# --- Output Models ---


@dataclass(frozen=True)
class LogListOutput:
    events: list[AuditLogEvent]
    total: int
    page: int
    limit: int
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit > 0 else 0


@dataclass(frozen=True)
class LogOutput:
    event: AuditLogEvent | None
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class LogStatsOutput:
    total: int
    by_level: dict[str, int]
    errors: list[OperationError] = field(default_factory=list)
    success: bool = True

"""
Audit log API.

Read-only access to the recorded audit events, restricted to
admin-equivalent callers.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from newsdesk.api.deps import get_audit_component, get_identity, get_permission_model
from newsdesk.api.errors import raise_for_errors
from newsdesk.api.schemas import LogListResponse, LogStatsResponse
from newsdesk.components.audit import (
    AuditComponent,
    GetLogInput,
    LogStatsInput,
    QueryLogsInput,
)
from newsdesk.domain.entities import AuditLogEvent, LogLevel
from newsdesk.domain.policy import Identity, PermissionModel

router = APIRouter()


def require_admin(
    identity: Identity = Depends(get_identity),
    permissions: PermissionModel = Depends(get_permission_model),
) -> Identity:
    if not permissions.is_privileged(identity):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return identity


def _utc(value: datetime | None) -> datetime | None:
    # naive query bounds are read as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@router.get("", response_model=LogListResponse)
def query_logs(
    user_id: UUID | None = None,
    module: str | None = None,
    action: str | None = None,
    level: LogLevel | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    _: Identity = Depends(require_admin),
    component: AuditComponent = Depends(get_audit_component),
) -> Any:
    result = component.run_query(
        QueryLogsInput(
            user_id=user_id,
            module=module,
            action=action,
            level=level,
            start_time=_utc(start_time),
            end_time=_utc(end_time),
            page=page,
            limit=limit,
        )
    )
    raise_for_errors(result.errors)
    return LogListResponse(
        items=result.events,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/stats", response_model=LogStatsResponse)
def log_stats(
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    _: Identity = Depends(require_admin),
    component: AuditComponent = Depends(get_audit_component),
) -> Any:
    result = component.run_stats(
        LogStatsInput(start_time=_utc(start_time), end_time=_utc(end_time))
    )
    raise_for_errors(result.errors)
    return LogStatsResponse(total=result.total, by_level=result.by_level)


@router.get("/{event_id}", response_model=AuditLogEvent)
def get_log(
    event_id: UUID,
    _: Identity = Depends(require_admin),
    component: AuditComponent = Depends(get_audit_component),
) -> Any:
    result = component.run_get(GetLogInput(event_id=event_id))
    raise_for_errors(result.errors)
    return result.event

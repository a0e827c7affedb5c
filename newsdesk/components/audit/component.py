"""
Audit component - audit event recording and querying.

Recording is best-effort: a failing sink is logged and skipped, and
``AuditRecorder`` never raises into the operation that triggered it.
Storage, rotation and durability belong to the sinks.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any
from uuid import UUID

from newsdesk.components.errors import (
    STATUS_FOR_KIND,
    OperationError,
    PersistenceError,
    internal,
    not_found,
)
from newsdesk.domain.entities import AuditLogEvent

from ._events import DEFAULT_SENSITIVE_FIELDS, build_event
from .models import (
    AuditQuery,
    GetLogInput,
    LogListOutput,
    LogOutput,
    LogStatsInput,
    LogStatsOutput,
    QueryLogsInput,
    RequestContext,
)
from .ports import AuditPort, AuditSinkPort, AuditStorePort

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Hands audit events to the configured sinks."""

    def __init__(
        self,
        sinks: Sequence[AuditSinkPort] = (),
        sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS,
        enabled: bool = True,
    ) -> None:
        self._sinks = list(sinks)
        self._sensitive_fields = tuple(sensitive_fields)
        self._enabled = enabled

    def record(self, event: AuditLogEvent) -> None:
        """Deliver one event to every sink. Never raises."""
        if not self._enabled:
            return
        for sink in self._sinks:
            try:
                sink.record(event)
            except Exception:
                logger.warning(
                    "Failed to record audit event %s (%s) via %s",
                    event.id,
                    event.action,
                    type(sink).__name__,
                    exc_info=True,
                )

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
    ) -> AuditLogEvent | None:
        """
        Build an event and record it.

        Request metadata in ``context`` takes precedence over the given
        ``method``/``endpoint`` defaults. Returns the event, or None when
        recording is disabled or the event could not be built.
        """
        if not self._enabled:
            return None

        ctx = context or RequestContext()
        try:
            event = build_event(
                method=ctx.method or method,
                endpoint=ctx.endpoint or endpoint,
                status_code=status_code,
                user_id=user_id,
                ip_address=ctx.ip_address,
                user_agent=ctx.user_agent,
                message=message,
                metadata=metadata,
                action=action,
                module=module,
                sensitive_fields=self._sensitive_fields,
            )
        except Exception:
            logger.warning("Failed to build audit event for %s %s", method, endpoint, exc_info=True)
            return None

        self.record(event)
        return event


class AuditComponent:
    """Read access to the stored audit log."""

    def __init__(self, store: AuditStorePort) -> None:
        self._store = store

    def run(
        self, inp: QueryLogsInput | GetLogInput | LogStatsInput
    ) -> LogListOutput | LogOutput | LogStatsOutput:
        if isinstance(inp, QueryLogsInput):
            return self.run_query(inp)
        elif isinstance(inp, GetLogInput):
            return self.run_get(inp)
        elif isinstance(inp, LogStatsInput):
            return self.run_stats(inp)
        else:
            raise TypeError(f"Unknown input type: {type(inp)}")

    def run_query(self, inp: QueryLogsInput) -> LogListOutput:
        page = max(inp.page, 1)
        limit = max(inp.limit, 1)
        query = AuditQuery(
            user_id=inp.user_id,
            module=inp.module,
            action=inp.action,
            level=inp.level,
            start_time=inp.start_time,
            end_time=inp.end_time,
            limit=limit,
            offset=(page - 1) * limit,
        )
        try:
            events, total = self._store.query(query)
        except PersistenceError:
            logger.exception("Audit log query failed")
            return LogListOutput(
                events=[], total=0, page=page, limit=limit, errors=[internal()], success=False
            )
        return LogListOutput(events=events, total=total, page=page, limit=limit)

    def run_get(self, inp: GetLogInput) -> LogOutput:
        errors: list[OperationError] = []
        try:
            event = self._store.get_by_id(inp.event_id)
        except PersistenceError:
            logger.exception("Audit log lookup failed for %s", inp.event_id)
            return LogOutput(event=None, errors=[internal()], success=False)

        if event is None:
            errors.append(not_found(f"Log entry {inp.event_id} not found"))
            return LogOutput(event=None, errors=errors, success=False)
        return LogOutput(event=event)

    def run_stats(self, inp: LogStatsInput) -> LogStatsOutput:
        query = AuditQuery(start_time=inp.start_time, end_time=inp.end_time)
        try:
            by_level = self._store.count_by_level(query)
        except PersistenceError:
            logger.exception("Audit log stats failed")
            return LogStatsOutput(total=0, by_level={}, errors=[internal()], success=False)
        return LogStatsOutput(total=sum(by_level.values()), by_level=by_level)


def report_outcome(
    audit: AuditPort | None,
    *,
    module: str,
    operation: str,
    method: str,
    endpoint: str,
    ok_status: int,
    user_id: UUID | None,
    errors: Sequence[OperationError],
    context: RequestContext | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """
    Emit the audit event for one component operation.

    The status code is ``ok_status`` on success, otherwise the status of the
    first error's kind. Failures of the audit port are logged and dropped.
    """
    if audit is None:
        return

    meta: dict[str, Any] = {"operation": operation, **(metadata or {})}
    message = None
    if errors:
        first = errors[0]
        status_code = STATUS_FOR_KIND[first.kind]
        meta["errors"] = [e.code for e in errors]
        message = f"{module.capitalize()} {operation} failed: {first.message}"
    else:
        status_code = ok_status

    try:
        audit.emit(
            method=method,
            endpoint=endpoint,
            status_code=status_code,
            user_id=user_id,
            context=context,
            message=message,
            metadata=meta,
            module=module,
        )
    except Exception:
        logger.warning("Audit emission failed for %s %s", module, operation, exc_info=True)

"""
Audit component - Audit event recording and querying.
"""

from ._events import (
    DEFAULT_SENSITIVE_FIELDS,
    build_event,
    derive_action,
    extract_module,
    level_for_status,
    sanitize_metadata,
)
from .component import AuditComponent, AuditRecorder, report_outcome
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

__all__ = [
    # Recording
    "AuditRecorder",
    "RequestContext",
    "build_event",
    "derive_action",
    "extract_module",
    "level_for_status",
    "sanitize_metadata",
    "report_outcome",
    "DEFAULT_SENSITIVE_FIELDS",
    # Querying
    "AuditComponent",
    "AuditQuery",
    "GetLogInput",
    "LogListOutput",
    "LogOutput",
    "LogStatsInput",
    "LogStatsOutput",
    "QueryLogsInput",
    # Ports
    "AuditPort",
    "AuditSinkPort",
    "AuditStorePort",
]

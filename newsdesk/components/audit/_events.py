"""
Audit event construction helpers.

Derives module, action and level from request metadata and redacts
sensitive values before an event leaves the process.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from newsdesk.domain.entities import AuditLogEvent, LogLevel

DEFAULT_SENSITIVE_FIELDS: tuple[str, ...] = (
    "password",
    "token",
    "accessToken",
    "refreshToken",
    "authorization",
)

REDACTED = "[REDACTED]"
CIRCULAR = "[Circular Reference]"

_MODULE_RE = re.compile(r"/api/v1/([^/]+)")
_ID_SEGMENT_RE = re.compile(
    r"^(\d+|[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})$"
)

_METHOD_VERBS = {
    "GET": "view",
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
}

# Checked in order; the first fragment found in the endpoint names the action.
_SPECIAL_ACTIONS: tuple[tuple[str, str], ...] = (
    ("/login", "login"),
    ("/logout", "logout"),
    ("/refresh", "refresh_token"),
    ("/submit", "submit"),
    ("/approve", "approve"),
    ("/reject", "reject"),
    ("/publish", "publish"),
)


def extract_module(endpoint: str) -> str:
    """/api/v1/{module}/... -> module, otherwise "unknown"."""
    match = _MODULE_RE.search(endpoint)
    return match.group(1) if match else "unknown"


def derive_action(method: str, endpoint: str) -> str:
    for fragment, action in _SPECIAL_ACTIONS:
        if fragment in endpoint:
            return action

    verb = _METHOD_VERBS.get(method.upper(), method.lower())
    # Identifier segments are skipped so DELETE /articles/<id> reads "delete_articles".
    segments = [s for s in endpoint.split("/") if s and not _ID_SEGMENT_RE.match(s)]
    resource = segments[-1] if segments else "unknown"
    return f"{verb}_{resource}"


def level_for_status(status_code: int) -> LogLevel:
    if status_code >= 500:
        return LogLevel.ERROR
    if status_code >= 400:
        return LogLevel.WARN
    return LogLevel.INFO


def sanitize_metadata(
    metadata: Any,
    sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS,
) -> Any:
    """
    Return a copy of ``metadata`` with sensitive keys redacted at any depth.

    Only truthy values are replaced. Self-referencing structures are cut with
    a marker instead of recursing forever. Non-container values are returned
    unchanged.
    """
    fields = frozenset(sensitive_fields)
    visiting: set[int] = set()

    def walk(value: Any) -> Any:
        if not isinstance(value, (dict, list, tuple)):
            return value
        if id(value) in visiting:
            return CIRCULAR
        visiting.add(id(value))
        try:
            if isinstance(value, dict):
                out: dict[Any, Any] = {}
                for key, item in value.items():
                    if key in fields and item:
                        out[key] = REDACTED
                    else:
                        out[key] = walk(item)
                return out
            return [walk(item) for item in value]
        finally:
            visiting.discard(id(value))

    return walk(metadata)


def build_event(
    *,
    method: str,
    endpoint: str,
    status_code: int,
    user_id: UUID | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    message: str | None = None,
    metadata: dict[str, Any] | None = None,
    action: str | None = None,
    module: str | None = None,
    duration_ms: int | None = None,
    sensitive_fields: Iterable[str] = DEFAULT_SENSITIVE_FIELDS,
) -> AuditLogEvent:
    method = method.upper()
    if message is None:
        message = f"{method} {endpoint} - {status_code}"
        if duration_ms is not None:
            message += f" ({duration_ms}ms)"

    meta = dict(metadata) if metadata else {}
    if duration_ms is not None:
        meta.setdefault("duration", duration_ms)

    return AuditLogEvent(
        user_id=user_id,
        action=action or derive_action(method, endpoint),
        module=module or extract_module(endpoint),
        endpoint=endpoint,
        method=method,
        status_code=status_code,
        ip_address=ip_address,
        user_agent=user_agent,
        message=message,
        level=level_for_status(status_code),
        metadata=sanitize_metadata(meta, sensitive_fields) if meta else None,
    )

"""
Error types shared by the workflow components.

Expected failures are returned as ``OperationError`` values inside an output
object; only storage faults travel as exceptions (``PersistenceError``) and
are converted to ``internal`` errors at the component boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ErrorKind = Literal["not_found", "forbidden", "conflict", "validation", "internal"]


class PersistenceError(Exception):
    """Raised by repository adapters when the backing store fails."""


class SlugConflictError(PersistenceError):
    """The store rejected a write because another row already holds the slug."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Slug '{slug}' already exists")
        self.slug = slug


@dataclass(frozen=True)
class OperationError:
    """A typed failure of a component operation."""

    kind: ErrorKind
    code: str
    message: str
    field: str | None = None


def not_found(message: str, code: str = "not_found") -> OperationError:
    return OperationError(kind="not_found", code=code, message=message)


def forbidden(message: str, code: str = "forbidden") -> OperationError:
    return OperationError(kind="forbidden", code=code, message=message)


def conflict(
    message: str, code: str = "invalid_state", field: str | None = "status"
) -> OperationError:
    return OperationError(kind="conflict", code=code, message=message, field=field)


def validation(message: str, code: str, field: str | None = None) -> OperationError:
    return OperationError(kind="validation", code=code, message=message, field=field)


def internal(message: str = "Internal error") -> OperationError:
    return OperationError(kind="internal", code="internal", message=message)


# HTTP-ish status used when an operation outcome is written to the audit log.
STATUS_FOR_KIND: dict[ErrorKind, int] = {
    "not_found": 404,
    "forbidden": 403,
    "conflict": 409,
    "validation": 400,
    "internal": 500,
}
